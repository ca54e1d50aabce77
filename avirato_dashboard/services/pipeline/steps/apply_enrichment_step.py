"""Step to join reference names onto the fetched reservations."""

from typing import Optional

from avirato_dashboard.config import settings as default_settings
from avirato_dashboard.config.settings import EnrichmentSettings
from avirato_dashboard.services.pipeline import PipelineContext, PipelineStep
from avirato_dashboard.transformers.enrichment_transformer import EnrichmentTransformer


class ApplyEnrichmentStep(PipelineStep):
    """Attach operator, régime, space type and extras names."""

    def __init__(self, enrichment_settings: Optional[EnrichmentSettings] = None):
        super().__init__("ApplyEnrichment")
        self.enrichment_settings = enrichment_settings or default_settings.enrichment

    async def execute(self, context: PipelineContext) -> bool:
        EnrichmentTransformer.enrich(
            context.reservations,
            context.reference,
            labels=self.enrichment_settings,
            site_code=context.site_code,
        )
        return True

    def is_required(self) -> bool:
        return False
