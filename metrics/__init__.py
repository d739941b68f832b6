"""Exposition parsing, label enrichment and serialization"""
from .enricher import EnrichedPayload, EnrichmentPipeline
from .errors import DeliveryError, ParseError, RelayError, ResolutionError, ValidationError
from .labels import LabelInjector
from .models import EnrichmentContext, Label, MetadataEntry, MetadataKind, Sample
from .parser import ExpositionParser, iter_entries

__all__ = [
    'EnrichedPayload',
    'EnrichmentPipeline',
    'DeliveryError',
    'ParseError',
    'RelayError',
    'ResolutionError',
    'ValidationError',
    'LabelInjector',
    'EnrichmentContext',
    'Label',
    'MetadataEntry',
    'MetadataKind',
    'Sample',
    'ExpositionParser',
    'iter_entries'
]
