"""Supabase repository for advisory records."""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from supabase import Client

from glucose_advisor.adapters.serialization import (
    feedback_to_json,
    parse_datetime,
    parse_feedback,
)
from glucose_advisor.domain.advisory import (
    AdvisoryMetadata,
    AdvisoryRecord,
    AdvisoryResult,
)
from glucose_advisor.services.advisory import AdvisoryRepository

_TABLE = "advisory_analyses"


@dataclass
class SupabaseAdvisoryRepository(AdvisoryRepository):
    """Supabase implementation for advisory records."""

    client: Client

    def create_record(self, record: AdvisoryRecord) -> AdvisoryRecord:
        """Insert an advisory record."""
        response = self.client.table(_TABLE).insert(_record_row(record)).execute()
        if not response.data:
            raise RuntimeError("Failed to create advisory record")
        return _parse_record(response.data[0])

    def get_record(self, user_id: UUID, record_id: UUID) -> AdvisoryRecord | None:
        """Return an active record owned by the user."""
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq("id", str(record_id))
            .eq("user_id", str(user_id))
            .eq("is_active", True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_record(response.data[0])

    def find_for_analysis(self, analysis_id: UUID) -> AdvisoryRecord | None:
        """Return the latest record for an analysis."""
        return self._find_latest("analysis_id", analysis_id)

    def find_for_meal_entry(self, meal_entry_id: UUID) -> AdvisoryRecord | None:
        """Return the latest record for a meal entry."""
        return self._find_latest("meal_entry_id", meal_entry_id)

    def list_records(  # noqa: PLR0913
        self,
        user_id: UUID,
        *,
        risk_level: str | None,
        since: datetime | None,
        limit: int,
        offset: int,
    ) -> list[AdvisoryRecord]:
        """Return active records, newest first."""
        request = (
            self.client.table(_TABLE)
            .select("*")
            .eq("user_id", str(user_id))
            .eq("is_active", True)
        )
        if risk_level is not None:
            request = request.eq("risk_level", risk_level)
        if since is not None:
            request = request.gte("created_at", since.isoformat())
        response = (
            request.order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
        return [_parse_record(row) for row in response.data or []]

    def update_record(self, record: AdvisoryRecord) -> AdvisoryRecord:
        """Persist feedback and activity changes."""
        response = (
            self.client.table(_TABLE)
            .update(
                {
                    "feedback": feedback_to_json(record.feedback),
                    "is_active": record.is_active,
                }
            )
            .eq("id", str(record.id))
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to update advisory record")
        return _parse_record(response.data[0])

    def _find_latest(self, column: str, value: UUID) -> AdvisoryRecord | None:
        response = (
            self.client.table(_TABLE)
            .select("*")
            .eq(column, str(value))
            .eq("is_active", True)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_record(response.data[0])


def _record_row(record: AdvisoryRecord) -> dict[str, object]:
    return {
        "id": str(record.id),
        "user_id": str(record.user_id) if record.user_id else None,
        "analysis_id": str(record.analysis_id) if record.analysis_id else None,
        "meal_entry_id": str(record.meal_entry_id) if record.meal_entry_id else None,
        "result": record.result.model_dump(mode="json"),
        "risk_level": record.result.glucose_prediction.risk_level,
        "model": record.metadata.model,
        "baseline_glucose": record.metadata.baseline_glucose,
        "processing_time_ms": record.metadata.processing_time_ms,
        "created_at": record.metadata.requested_at.isoformat(),
        "feedback": feedback_to_json(record.feedback),
        "is_active": record.is_active,
    }


def _parse_record(row: dict[str, object]) -> AdvisoryRecord:
    def _optional_uuid(key: str) -> UUID | None:
        value = row.get(key)
        return UUID(str(value)) if value else None

    return AdvisoryRecord(
        id=UUID(str(row["id"])),
        user_id=_optional_uuid("user_id"),
        analysis_id=_optional_uuid("analysis_id"),
        meal_entry_id=_optional_uuid("meal_entry_id"),
        result=AdvisoryResult.model_validate(row.get("result") or {}),
        metadata=AdvisoryMetadata(
            model=str(row.get("model", "")),
            baseline_glucose=float(row.get("baseline_glucose", 0.0)),
            processing_time_ms=int(row.get("processing_time_ms", 0)),
            requested_at=parse_datetime(row.get("created_at"))
            or datetime.now(tz=UTC),
        ),
        feedback=parse_feedback(row.get("feedback")),
        is_active=bool(row.get("is_active", True)),
    )
