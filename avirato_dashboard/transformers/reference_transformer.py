"""Transformer for building lookup maps from Avirato reference endpoints."""

from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError
from structlog import get_logger

from avirato_dashboard.models.avirato import Extra, Operator, Regime, SpaceSubtype

logger = get_logger(__name__)

_SUBTYPE_LIST_KEYS = ("space_subtypes", "spaceSubtypes", "subtypes")
_SUBTYPE_ID_KEYS = ("space_subtype_id", "spaceSubtypeId", "subtype_id")


class ReferenceTransformer:
    """Builds id → name maps from raw reference rows.

    Rows that do not validate are logged and skipped; one bad row never
    discards the rest of a lookup.
    """

    @staticmethod
    def build_operator_map(
        rows: Iterable[Any],
        overrides: Optional[Mapping[int, str]] = None,
        site_code: Any = None,
    ) -> dict[int, str]:
        """Build {operator_id: name}.

        The map is seeded with ``overrides`` (channel codes the API does not
        always list) and then overlaid with API-provided names.

        Args:
            rows: Raw operator rows
            overrides: Statically configured operator names
            site_code: Site code for logging context

        Returns:
            Operator name map
        """
        operators: dict[int, str] = dict(overrides or {})
        for row in rows:
            try:
                operator = Operator.model_validate(row)
            except ValidationError as e:
                logger.warning("Skipping invalid operator row", site_code=site_code, error=str(e))
                continue
            operators[operator.id] = operator.name
        return operators

    @staticmethod
    def build_regime_map(rows: Iterable[Any], site_code: Any = None) -> dict[str, str]:
        """Build {regime_code: name}."""
        regimes: dict[str, str] = {}
        for row in rows:
            try:
                regime = Regime.model_validate(row)
            except ValidationError as e:
                logger.warning("Skipping invalid regime row", site_code=site_code, error=str(e))
                continue
            regimes[regime.code] = regime.name
        return regimes

    @staticmethod
    def build_space_subtype_map(rows: Iterable[Any], site_code: Any = None) -> dict[int, str]:
        """Build {space_subtype_id: name} by walking space types and their subtypes.

        Rows that carry a subtype list are treated as space types and each of
        their subtypes is validated on its own; rows that carry a subtype id
        are taken as subtypes directly.

        Args:
            rows: Raw rows from the space endpoint
            site_code: Site code for logging context

        Returns:
            Space subtype name map
        """
        subtypes: dict[int, str] = {}
        for row in rows:
            if not isinstance(row, dict):
                continue
            list_key = next((key for key in _SUBTYPE_LIST_KEYS if key in row), None)
            if list_key is not None:
                candidates = row[list_key] or []
                if not isinstance(candidates, list):
                    logger.warning(
                        "Skipping space type with unreadable subtypes",
                        site_code=site_code,
                        space_type=row.get("name"),
                    )
                    continue
            elif any(key in row for key in _SUBTYPE_ID_KEYS):
                candidates = [row]
            else:
                continue

            for candidate in candidates:
                try:
                    subtype = SpaceSubtype.model_validate(candidate)
                except ValidationError as e:
                    logger.warning("Skipping invalid space subtype", site_code=site_code, error=str(e))
                    continue
                subtypes[subtype.id] = subtype.name
        return subtypes

    @staticmethod
    def build_extras_catalog(rows: Iterable[Any], site_code: Any = None) -> dict[int, str]:
        """Build {extra_id: name}."""
        extras: dict[int, str] = {}
        for row in rows:
            try:
                extra = Extra.model_validate(row)
            except ValidationError as e:
                logger.warning("Skipping invalid extra row", site_code=site_code, error=str(e))
                continue
            extras[extra.id] = extra.name
        return extras
