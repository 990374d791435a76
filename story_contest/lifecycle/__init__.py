"""Competition lifecycle: phases, quota, entries, judging and ranking."""
