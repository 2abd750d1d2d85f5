"""
Import service: decode -> report -> apply (catalog items of one lot).

Orchestrates the header resolver, the row decoder and the reconciler.
Decoding is chunked: ``iter_decode`` is a generator that yields a
DecodeProgress after every chunk so an interactive host can stay
responsive; dropping the generator abandons the import without side
effects. Uses structured logging (LogContext, get_logger("ingestion.*")).
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Sequence
from arp_config.schema import ImportSettings
from arp_kernel.domain.entities import CatalogItem, Contract, SupplyType
from arp_kernel.domain.operations import new_id, replace_lot_items
from arp_kernel.exceptions import (
    EmptyImportError,
    EntityNotFoundError,
    ImportBlockedError,
    ImportHeaderError,
)
from arp_kernel.logging_config import LogContext, get_logger

from arp_ingestion.domain.types import (
    CandidateRow,
    DecodeProgress,
    DecodeResult,
    ImportMode,
    ImportStats,
    ReconcileResult,
    RowError,
)
from arp_ingestion.mapping.engine import decode_row
from arp_ingestion.mapping.header import (
    detect_delimiter,
    map_headers,
    missing_columns,
    parse_line,
    split_lines,
)
from arp_ingestion.promoters.catalog_items import reconcile

logger = get_logger("ingestion.import_service")

EMPTY_IMPORT_MESSAGE = "CSV vazio ou sem linhas suficientes."
HEADER_ERROR_MESSAGE = (
    "Cabeçalho inválido. Esperado: Item;Especificacao;Unid;Total;ValorUnitario "
    "(ou variações do edital)."
)

ProgressCallback = Callable[[DecodeProgress], None]


def progress_percent(done: int, total: int) -> int:
    """Integer percentage, halves rounded up."""
    if total <= 0:
        return 100
    return (200 * done + total) // (2 * total)


class ImportService:
    """Decodes price tables and applies them to a lot. Holds no import state between calls."""

    def __init__(self, settings: ImportSettings | None = None):
        self._settings = settings or ImportSettings()

    @property
    def settings(self) -> ImportSettings:
        return self._settings

    def iter_decode(
        self,
        text: str,
        supply_type: SupplyType,
        existing_items: Sequence[CatalogItem] = (),
    ) -> Generator[DecodeProgress, None, DecodeResult]:
        """
        Decode ``text`` chunk by chunk.

        Yields a DecodeProgress after each chunk and returns the
        DecodeResult. Header-level failures return immediately without
        yielding.
        """
        supply_type = SupplyType(supply_type)
        lines = split_lines(text)
        lines_read = max(len(lines) - 1, 0)
        import_id = new_id("import")

        logger.info("import_decode_started", extra={
            "import_id": import_id,
            "line_count": len(lines),
            "supply_type": supply_type.value,
        })

        if len(lines) < 2:
            logger.warning("import_header_rejected", extra={
                "import_id": import_id, "reason": EmptyImportError.code,
            })
            return DecodeResult(
                header_error=EMPTY_IMPORT_MESSAGE,
                header_error_code=EmptyImportError.code,
                lines_read=lines_read,
            )

        delimiter = detect_delimiter(lines[0])
        headers = tuple(parse_line(lines[0], delimiter))
        header_map = map_headers(headers)
        if header_map is None:
            logger.warning("import_header_rejected", extra={
                "import_id": import_id,
                "reason": ImportHeaderError.code,
                "missing": list(missing_columns(headers)),
            })
            return DecodeResult(
                header_error=HEADER_ERROR_MESSAGE,
                header_error_code=ImportHeaderError.code,
                headers=headers,
                lines_read=lines_read,
                delimiter=delimiter,
            )

        rows: list[CandidateRow] = []
        errors: list[RowError] = []
        chunk = self._settings.chunk_size
        for start in range(1, len(lines), chunk):
            block = lines[start:start + chunk]
            for offset, line in enumerate(block):
                # 1-based, header is line 1
                line_number = start + offset + 1
                decoded = decode_row(parse_line(line, delimiter), header_map, supply_type, line_number)
                if isinstance(decoded, CandidateRow):
                    rows.append(decoded)
                else:
                    errors.extend(decoded)

            done = start + len(block)
            progress = DecodeProgress(
                lines_done=done,
                lines_total=len(lines),
                percent=progress_percent(done, len(lines)),
            )
            logger.debug("import_chunk_decoded", extra={
                "import_id": import_id, "lines_done": done, "percent": progress.percent,
            })
            yield progress

        existing_numbers = {it.item_number for it in existing_items}
        result = DecodeResult(
            rows=tuple(rows),
            errors=tuple(errors),
            headers=headers,
            lines_read=lines_read,
            existing_matches=sum(1 for r in rows if r.item_number in existing_numbers),
            delimiter=delimiter,
        )
        logger.info("import_decode_completed", extra={
            "import_id": import_id,
            "valid_rows": result.valid_count,
            "invalid_lines": result.invalid_lines,
            "error_count": len(result.errors),
            "existing_matches": result.existing_matches,
        })
        return result

    def decode(
        self,
        text: str,
        supply_type: SupplyType,
        existing_items: Sequence[CatalogItem] = (),
        on_progress: ProgressCallback | None = None,
    ) -> DecodeResult:
        """Run ``iter_decode`` to completion, forwarding progress to ``on_progress``."""
        steps = self.iter_decode(text, supply_type, existing_items)
        while True:
            try:
                progress = next(steps)
            except StopIteration as stop:
                return stop.value
            if on_progress is not None:
                on_progress(progress)

    def ensure_applicable(self, result: DecodeResult, only_valid: bool | None = None) -> None:
        """
        Gate that must pass before anything is written.

        Raises:
            EmptyImportError: fewer than two non-empty lines.
            ImportHeaderError: required columns unresolved.
            ImportBlockedError: strict mode with invalid lines present.
        """
        only_valid = self._settings.only_valid if only_valid is None else only_valid
        if result.header_error_code == EmptyImportError.code:
            raise EmptyImportError(result.lines_read)
        if result.has_header_error:
            raise ImportHeaderError(result.headers, missing_columns(result.headers))
        if not only_valid and result.invalid_lines > 0:
            logger.warning("import_blocked", extra={
                "invalid_lines": result.invalid_lines,
                "error_count": len(result.errors),
            })
            raise ImportBlockedError(
                result.invalid_lines,
                len(result.errors),
                details=result.errors_by_line(),
            )

    def apply(
        self,
        result: DecodeResult,
        existing_items: Sequence[CatalogItem],
        lot_id: str,
        supply_type: SupplyType,
        mode: ImportMode | str | None = None,
        only_valid: bool | None = None,
    ) -> ReconcileResult:
        """All-or-nothing: check the gate, then reconcile the valid rows."""
        self.ensure_applicable(result, only_valid)
        mode = ImportMode(mode if mode is not None else self._settings.default_mode)

        with LogContext.bind(lot_id=lot_id):
            outcome = reconcile(result.rows, existing_items, mode, lot_id, SupplyType(supply_type))
            logger.info("import_applied", extra={
                "mode": mode.value,
                "inserted": outcome.stats.inserted,
                "updated": outcome.stats.updated,
                "ignored": outcome.stats.ignored,
                "item_count": len(outcome.items),
            })
        return outcome

    def apply_to_contract(
        self,
        contract: Contract,
        lot_id: str,
        result: DecodeResult,
        mode: ImportMode | str | None = None,
        only_valid: bool | None = None,
    ) -> tuple[Contract, ImportStats]:
        """Apply ``result`` to one lot of ``contract`` and return the new contract."""
        lot = contract.find_lot(lot_id)
        if lot is None:
            raise EntityNotFoundError("Lot", lot_id)
        with LogContext.bind(contract_id=contract.id):
            outcome = self.apply(result, lot.items, lot.id, lot.supply_type, mode, only_valid)
        return replace_lot_items(contract, lot.id, outcome.items), outcome.stats
