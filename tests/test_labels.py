"""Tests for context label injection"""
import pytest

from metrics.errors import ValidationError
from metrics.labels import LabelInjector
from metrics.models import EnrichmentContext, Label


NAME = Label("__name__", "up")


class TestLabelInjector:
    """Test label merging, ordering and collisions"""

    def setup_method(self):
        """Setup test fixtures"""
        self.context = EnrichmentContext(cluster_id="prod-1", source_ip="10.0.0.1", country_code="DE")

    def test_cluster_only_by_default(self):
        """Test the default injector adds only cluster_id"""
        labels = LabelInjector().inject([NAME, Label("method", "GET")], self.context)

        assert labels == (NAME, Label("cluster_id", "prod-1"), Label("method", "GET"))

    def test_all_context_labels(self):
        """Test source_ip and country_code when enabled"""
        injector = LabelInjector(include_source_ip=True, include_country_code=True)

        labels = injector.inject([NAME], self.context)

        assert labels == (
            NAME,
            Label("cluster_id", "prod-1"),
            Label("country_code", "DE"),
            Label("source_ip", "10.0.0.1"),
        )

    def test_missing_source_ip_skipped(self):
        """Test empty source address adds no label"""
        injector = LabelInjector(include_source_ip=True)
        context = EnrichmentContext(cluster_id="c1")

        assert injector.context_labels(context) == [Label("cluster_id", "c1")]

    def test_country_code_defaults_to_unknown(self):
        """Test unresolved country falls back to the sentinel"""
        injector = LabelInjector(include_country_code=True)
        context = EnrichmentContext(cluster_id="c1", source_ip="10.0.0.1")

        assert Label("country_code", "unknown") in injector.context_labels(context)

    def test_collision_injected_value_wins(self):
        """Test an existing label with an injected name is replaced"""
        existing = [NAME, Label("cluster_id", "spoofed"), Label("job", "node")]

        labels = LabelInjector().inject(existing, self.context)

        cluster_labels = [label for label in labels if label.name == "cluster_id"]
        assert cluster_labels == [Label("cluster_id", "prod-1")]
        assert len(labels) == 3

    def test_collision_on_every_injected_name(self):
        """Test each injected name appears exactly once"""
        injector = LabelInjector(include_source_ip=True, include_country_code=True)
        existing = [
            NAME,
            Label("source_ip", "1.1.1.1"),
            Label("country_code", "XX"),
            Label("cluster_id", "other"),
        ]

        labels = injector.inject(existing, self.context)

        names = [label.name for label in labels]
        assert len(names) == len(set(names))
        assert dict((label.name, label.value) for label in labels)["source_ip"] == "10.0.0.1"

    def test_byte_wise_ordering(self):
        """Test labels sort by raw name bytes"""
        existing = [NAME, Label("zone", "a"), Label("Zone", "b"), Label("_hidden", "c"), Label("alpha", "d")]

        labels = LabelInjector().inject(existing, self.context)

        assert [label.name for label in labels] == [
            "Zone", "__name__", "_hidden", "alpha", "cluster_id", "zone"
        ]

    def test_input_labels_untouched(self):
        """Test injection does not mutate the input"""
        existing = [NAME, Label("cluster_id", "old")]

        LabelInjector().inject(existing, self.context)

        assert existing == [NAME, Label("cluster_id", "old")]


class TestEnrichmentContext:
    """Test context validation"""

    def test_empty_cluster_id_rejected(self):
        """Test cluster identifier is mandatory"""
        with pytest.raises(ValidationError):
            EnrichmentContext(cluster_id="")

    def test_context_is_immutable(self):
        """Test context fields cannot be reassigned"""
        context = EnrichmentContext(cluster_id="c1")

        with pytest.raises(Exception):
            context.cluster_id = "c2"
