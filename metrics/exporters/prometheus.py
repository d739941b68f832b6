"""Prometheus text format writer"""
import math
from decimal import Decimal
from typing import Iterable, List, Union

from ..models import MetadataEntry, MetadataKind, Sample, METRIC_NAME_LABEL


def escape_label_value(value: str) -> str:
    """Escape a label value for use inside double quotes"""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_value(value: float) -> str:
    """Render a sample value.

    Finite values use the shortest digit string that parses back to the same
    double, laid out like Go's ``strconv.FormatFloat(v, 'g', -1, 64)`` so
    output matches what Prometheus itself writes: plain notation for decimal
    exponents in [-4, 6), exponent notation (``1e+06``) otherwise.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = "".join(str(d) for d in digit_tuple).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    prefix = "-" if sign else ""

    # Position of the decimal point relative to the start of ``digits``
    point = len(digits) + exponent
    exp10 = point - 1

    if exp10 < -4 or exp10 >= 6:
        mantissa = digits[0]
        if len(digits) > 1:
            mantissa += "." + digits[1:]
        exp_sign = "-" if exp10 < 0 else "+"
        return f"{prefix}{mantissa}e{exp_sign}{abs(exp10):02d}"

    if point <= 0:
        return f"{prefix}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return f"{prefix}{digits}{'0' * (point - len(digits))}"
    return f"{prefix}{digits[:point]}.{digits[point:]}"


class ExpositionWriter:
    """Render metadata entries and samples as exposition text"""

    def write_metadata(self, entry: MetadataEntry) -> str:
        """Reproduce a TYPE or HELP line"""
        if entry.kind is MetadataKind.HELP and not entry.text:
            return f"# HELP {entry.metric_name}\n"
        return f"# {entry.kind.value} {entry.metric_name} {entry.text}\n"

    def write_sample(self, sample: Sample) -> str:
        """Render one sample line; labels are written in the order given"""
        name = ""
        label_pairs: List[str] = []
        for label in sample.labels:
            if label.name == METRIC_NAME_LABEL:
                name = label.value
            else:
                label_pairs.append(f'{label.name}="{escape_label_value(label.value)}"')

        labels_str = ""
        if label_pairs:
            labels_str = "{" + ",".join(label_pairs) + "}"

        line = f"{name}{labels_str} {format_value(sample.value)}"
        if sample.timestamp is not None:
            line += f" {sample.timestamp}"
        return line + "\n"

    def write_entry(self, entry: Union[MetadataEntry, Sample]) -> str:
        if isinstance(entry, MetadataEntry):
            return self.write_metadata(entry)
        return self.write_sample(entry)

    def write(self, entries: Iterable[Union[MetadataEntry, Sample]]) -> bytes:
        """Render a whole document"""
        return "".join(self.write_entry(entry) for entry in entries).encode("utf-8")
