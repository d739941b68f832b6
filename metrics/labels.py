"""Context label injection"""
from typing import Iterable, List, Tuple

from .models import EnrichmentContext, Label, UNKNOWN_COUNTRY


CLUSTER_ID_LABEL = "cluster_id"
SOURCE_IP_LABEL = "source_ip"
COUNTRY_CODE_LABEL = "country_code"


def label_sort_key(label: Label) -> bytes:
    """Byte-wise ordering on label names"""
    return label.name.encode("utf-8")


class LabelInjector:
    """Merges request context labels into a sample's label set.

    Injected labels override existing labels of the same name, so the
    output holds exactly one label per injected name. The result is sorted
    by name; ``__name__`` stays in the set and is skipped by the writer.
    """

    def __init__(self, include_source_ip: bool = False, include_country_code: bool = False):
        self.include_source_ip = include_source_ip
        self.include_country_code = include_country_code

    def context_labels(self, context: EnrichmentContext) -> List[Label]:
        """Labels contributed by the request context"""
        labels = [Label(CLUSTER_ID_LABEL, context.cluster_id)]
        if self.include_source_ip and context.source_ip:
            labels.append(Label(SOURCE_IP_LABEL, context.source_ip))
        if self.include_country_code:
            labels.append(Label(COUNTRY_CODE_LABEL, context.country_code or UNKNOWN_COUNTRY))
        return labels

    def inject(self, labels: Iterable[Label], context: EnrichmentContext) -> Tuple[Label, ...]:
        """Return the sorted label set with context labels applied"""
        return self.merge(labels, self.context_labels(context))

    @staticmethod
    def merge(labels: Iterable[Label], injected: List[Label]) -> Tuple[Label, ...]:
        """Drop existing labels shadowed by ``injected``, append, and sort"""
        injected_names = {label.name for label in injected}
        merged = [label for label in labels if label.name not in injected_names]
        merged.extend(injected)
        merged.sort(key=label_sort_key)
        return tuple(merged)
