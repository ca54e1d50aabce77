"""Step to load the lookup maps used for enrichment."""

import asyncio
from typing import Any, Optional

from avirato_dashboard.clients.avirato_api_client import AviratoAPIClient, AviratoAuthExpiredError
from avirato_dashboard.config import settings as default_settings
from avirato_dashboard.config.settings import EnrichmentSettings
from avirato_dashboard.models.avirato import ReferenceData
from avirato_dashboard.services.pipeline import PipelineContext, PipelineStep
from avirato_dashboard.transformers.reference_transformer import ReferenceTransformer


class LoadReferenceDataStep(PipelineStep):
    """Fetch operators, régimes, spaces and extras concurrently.

    Each lookup is independent: a failed one leaves its map empty (operators
    keep the configured overrides) and the others still load.
    """

    LOOKUPS = ("operators", "regimes", "spaces", "extras")

    def __init__(
        self,
        api_client: AviratoAPIClient,
        enrichment_settings: Optional[EnrichmentSettings] = None,
    ):
        """Initialize the step.

        Args:
            api_client: Avirato API client
            enrichment_settings: Operator overrides, defaults to global settings
        """
        super().__init__("LoadReferenceData")
        self.api_client = api_client
        self.enrichment_settings = enrichment_settings or default_settings.enrichment

    async def execute(self, context: PipelineContext) -> bool:
        """Load every lookup map.

        Args:
            context: Pipeline context

        Returns:
            False only if every lookup failed
        """
        site_code = context.site_code
        results = await asyncio.gather(
            self.api_client.get_operators(site_code),
            self.api_client.get_regimes(site_code),
            self.api_client.get_spaces(site_code),
            self.api_client.get_extras(site_code),
            return_exceptions=True,
        )

        rows: dict[str, list[Any]] = {}
        outcomes: dict[str, str] = {}
        auth_error: Optional[AviratoAuthExpiredError] = None
        for name, result in zip(self.LOOKUPS, results):
            if isinstance(result, BaseException):
                if isinstance(result, AviratoAuthExpiredError):
                    auth_error = result
                elif not isinstance(result, Exception):
                    raise result
                self.logger.warning(
                    "Reference lookup failed, using fallback labels",
                    site_code=site_code,
                    lookup=name,
                    error=str(result),
                )
                context.add_error(self.name, f"{name} lookup failed: {str(result)}")
                rows[name] = []
                outcomes[name] = "failed"
            else:
                rows[name] = result
                outcomes[name] = "ok"
                self.logger.info(
                    "Reference lookup loaded",
                    site_code=site_code,
                    lookup=name,
                    row_count=len(result),
                )

        context.reference = ReferenceData(
            operators=ReferenceTransformer.build_operator_map(
                rows["operators"], self.enrichment_settings.operator_overrides, site_code
            ),
            regimes=ReferenceTransformer.build_regime_map(rows["regimes"], site_code),
            space_subtypes=ReferenceTransformer.build_space_subtype_map(rows["spaces"], site_code),
            extras=ReferenceTransformer.build_extras_catalog(rows["extras"], site_code),
        )
        context.stats["reference"] = outcomes

        if auth_error is not None:
            raise auth_error

        return any(outcome == "ok" for outcome in outcomes.values())

    def is_required(self) -> bool:
        """Optional - reservations are still shown with fallback labels.

        Returns:
            False
        """
        return False
