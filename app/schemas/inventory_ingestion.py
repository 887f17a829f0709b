"""
app/schemas/inventory_ingestion.py

Response schemas for inventory ingestion endpoints.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from app.domain.inventory import BatchOutcome, CanonicalField, HeaderMapping, IngestionReport, RowError


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class HeaderMappingResponse(_WireModel):
    """
    API response model for one header-to-field mapping.
    """

    header: str
    field: CanonicalField | None = None
    confidence: float = Field(..., ge=0.0, le=1.0)


class RowErrorResponse(_WireModel):
    """
    API response model for one row-level error or warning.
    """

    row: int = Field(..., ge=1)
    field: str
    column: str | None = None
    value: str = ""
    reason: str
    severity: str = Field(..., pattern="^(error|warning)$")


class BatchOutcomeResponse(_WireModel):
    """
    API response model for one persistence batch.
    """

    index: int = Field(..., ge=1)
    attempted: int = Field(..., ge=0)
    persisted: int = Field(..., ge=0)
    error: str | None = None
    rows: list[int] = Field(default_factory=list)


class DefaultedFieldsResponse(_WireModel):
    row: int = Field(..., ge=1)
    fields: list[str] = Field(default_factory=list)


class IngestionReportResponse(_WireModel):
    """
    API response model for one inventory file submission.
    """

    total_rows: int = Field(..., ge=0, alias="totalRows")
    accepted_rows: int = Field(..., ge=0, alias="acceptedRows")
    rejected_rows: int = Field(..., ge=0, alias="rejectedRows")
    persisted_rows: int = Field(0, ge=0, alias="persistedRows")
    header_mappings: list[HeaderMappingResponse] = Field(default_factory=list, alias="headerMappings")
    unmapped_headers: list[str] = Field(default_factory=list, alias="unmappedHeaders")
    errors: list[RowErrorResponse] = Field(default_factory=list)
    batches: list[BatchOutcomeResponse] = Field(default_factory=list)
    defaulted_fields: list[DefaultedFieldsResponse] = Field(default_factory=list, alias="defaultedFields")
    cancelled: bool = False
    file_kind: str | None = Field(None, alias="fileKind")
    delimiter: str | None = None

    @classmethod
    def from_report(cls, report: IngestionReport) -> IngestionReportResponse:
        return cls.model_validate(report.to_dict())

    def to_report(self) -> IngestionReport:
        """
        Rebuild the domain report, e.g. from a report posted back by a client.
        """

        return IngestionReport(
            total_rows=self.total_rows,
            accepted_rows=self.accepted_rows,
            rejected_rows=self.rejected_rows,
            header_mappings=tuple(
                HeaderMapping(
                    header=mapping.header,
                    field=mapping.field,
                    confidence=mapping.confidence,
                    strategy="reported",
                )
                for mapping in self.header_mappings
            ),
            errors=tuple(
                RowError(
                    row_number=error.row,
                    field=error.field,
                    value=error.value,
                    reason=error.reason,
                    severity=error.severity,
                    column=error.column,
                )
                for error in self.errors
            ),
            batches=tuple(
                BatchOutcome(
                    index=batch.index,
                    attempted=batch.attempted,
                    persisted=batch.persisted,
                    error=batch.error,
                    row_numbers=tuple(batch.rows),
                )
                for batch in self.batches
            ),
            defaulted_fields={item.row: tuple(item.fields) for item in self.defaulted_fields},
            cancelled=self.cancelled,
            file_kind=self.file_kind,
            delimiter=self.delimiter,
        )
