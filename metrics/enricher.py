"""Parse -> inject -> serialize pipeline for one exposition payload"""
from dataclasses import dataclass
from typing import Optional

from logging_config import get_logger, log_enrichment
from .exporters.prometheus import ExpositionWriter
from .labels import LabelInjector
from .models import EnrichmentContext, MetadataEntry
from .parser import ExpositionParser


logger = get_logger(__name__)


@dataclass(frozen=True)
class EnrichedPayload:
    """Serialized output of one enrichment pass"""
    body: bytes
    sample_count: int
    metadata_count: int


class EnrichmentPipeline:
    """Stateless enrichment of exposition payloads.

    A single instance is shared by all requests: every document, sample and
    label set lives only inside one ``process`` call. Any ``ParseError``
    propagates and the partially built output is dropped with it.
    """

    def __init__(self, injector: Optional[LabelInjector] = None, writer: Optional[ExpositionWriter] = None):
        self.injector = injector or LabelInjector()
        self.writer = writer or ExpositionWriter()

    def process(self, body: bytes, context: EnrichmentContext) -> EnrichedPayload:
        """Enrich a payload and report what was processed"""
        lines = []
        sample_count = 0
        metadata_count = 0

        for entry in ExpositionParser(body):
            if isinstance(entry, MetadataEntry):
                lines.append(self.writer.write_metadata(entry))
                metadata_count += 1
                continue

            enriched = entry.with_labels(self.injector.inject(entry.labels, context))
            lines.append(self.writer.write_sample(enriched))
            sample_count += 1

        log_enrichment(logger, context, sample_count, metadata_count)
        return EnrichedPayload(
            body="".join(lines).encode("utf-8"),
            sample_count=sample_count,
            metadata_count=metadata_count,
        )

    def enrich(self, body: bytes, context: EnrichmentContext) -> bytes:
        """Enrich a payload, returning the serialized bytes"""
        return self.process(body, context).body
