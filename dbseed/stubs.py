from dbseed.types import RecordCollection, StageResult, StageTrace


class NoOpInserter:
    """Dry-run inserter: reports the rows it would have written."""

    name = "inserter"

    def run(self, records: RecordCollection) -> StageResult:
        return StageResult(
            ok=True,
            data={"inserted": 0, "would_insert": len(records)},
            trace=StageTrace(
                stage=self.name,
                duration_ms=0.0,
                notes={"noop": True},
                table=records.table,
                row_count=0,
                skipped=True,
            ),
        )


class NoOpValidator:
    name = "validator"

    def run(self, *, table, records: RecordCollection, reference_values=None) -> StageResult:
        # accept everything
        return StageResult(
            ok=True,
            data=records,
            trace=StageTrace(
                stage=self.name,
                duration_ms=0.0,
                notes={"noop": True},
                table=table.name,
                skipped=True,
            ),
        )
