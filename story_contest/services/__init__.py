"""Services module for the Story Contest Platform."""
