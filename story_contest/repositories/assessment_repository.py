"""
Assessment Repository - Story Contest Platform
story_contest/repositories/assessment_repository.py

Stores one AssessmentResult per submission; re-assessment overwrites it.
"""

from typing import Dict, List, Optional, Tuple

from story_contest.models.assessment import AssessmentResult
from story_contest.models.enumerations import Disposition
from story_contest.repositories.base import BaseRepository


class AssessmentRepository(BaseRepository):
    """Repository for AssessmentResult upserts and lookups."""

    TABLE_NAME = "assessments"

    def upsert(self, submission_id: str, result: AssessmentResult) -> AssessmentResult:
        """Insert or overwrite the assessment of a submission."""
        result = result.model_copy(update={"submission_id": submission_id})
        sql = """
            INSERT INTO assessments (submission_id, overall_score, category_scores,
                                     risk_tier, disposition, needs_manual_assessment,
                                     result_json, assessed_at)
            VALUES (:submission_id, :overall_score, :category_scores,
                    :risk_tier, :disposition, :needs_manual_assessment,
                    :result_json, :assessed_at)
            ON CONFLICT (submission_id) DO UPDATE SET
                overall_score = excluded.overall_score,
                category_scores = excluded.category_scores,
                risk_tier = excluded.risk_tier,
                disposition = excluded.disposition,
                needs_manual_assessment = excluded.needs_manual_assessment,
                result_json = excluded.result_json,
                assessed_at = excluded.assessed_at
        """
        self.execute_query(
            sql,
            {
                "submission_id": submission_id,
                "overall_score": result.overall_score,
                "category_scores": self.to_json(result.category_scores),
                "risk_tier": result.integrity.risk_tier.value,
                "disposition": result.integrity.disposition.value,
                "needs_manual_assessment": int(result.needs_manual_assessment),
                "result_json": result.model_dump_json(),
                "assessed_at": self.to_db_timestamp(result.assessed_at),
            },
        )
        return result

    def get_by_submission(self, submission_id: str) -> Optional[AssessmentResult]:
        sql = "SELECT result_json FROM assessments WHERE submission_id = :submission_id"
        row = self.execute_query(sql, {"submission_id": submission_id}, fetch_one=True)
        if not row:
            return None
        return AssessmentResult.model_validate_json(row["result_json"])

    def get_judging_inputs(self, submission_ids: List[str]) -> Dict[str, Tuple[Dict[str, int], Disposition]]:
        """Map submission id -> (stored category scores, integrity disposition)."""
        if not submission_ids:
            return {}
        placeholders = ", ".join(f":id{i}" for i in range(len(submission_ids)))
        params = {f"id{i}": sid for i, sid in enumerate(submission_ids)}
        sql = f"""
            SELECT submission_id, category_scores, disposition
            FROM assessments
            WHERE submission_id IN ({placeholders})
        """
        rows = self.execute_query(sql, params, fetch_all=True) or []
        return {
            row["submission_id"]: (self.from_json(row["category_scores"]), Disposition(row["disposition"]))
            for row in rows
        }
