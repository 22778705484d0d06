import random
import re
from datetime import datetime, timezone

import pytest

from dnexpress.services.id_generator import IdentifierGenerator, to_base36

FIXED_TS = datetime(2026, 1, 21, 15, 30, tzinfo=timezone.utc).timestamp()


def make_generator(seed=7):
    return IdentifierGenerator(rng=random.Random(seed), clock=lambda: FIXED_TS)


def test_to_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"
    with pytest.raises(ValueError):
        to_base36(-1)


def test_tracking_number_format():
    gen = make_generator()
    tracking = gen.generate_tracking_number()
    stamp = to_base36(int(FIXED_TS * 1000)).upper()
    assert tracking.startswith("DNE" + stamp)
    assert re.fullmatch(r"DNE[0-9A-Z]+", tracking)
    assert len(tracking) == 3 + len(stamp) + 5


def test_ids_differ_within_same_millisecond():
    gen = make_generator()
    assert gen.generate_id() != gen.generate_id()
    assert re.fullmatch(r"id_\d+_[0-9a-z]{9}", gen.generate_id())


def test_customer_number_starts_at_sequence():
    gen = make_generator()
    assert gen.generate_customer_number(0, lambda n: False) == "DNX-100001"
    assert gen.generate_customer_number(4, lambda n: False) == "DNX-100005"


def test_customer_number_skips_past_taken_numbers():
    gen = make_generator()
    taken = {"DNX-100003", "DNX-100004"}
    assert gen.generate_customer_number(2, taken.__contains__) == "DNX-100005"


def test_sku_and_manifest_number_formats():
    gen = make_generator()
    assert re.fullmatch(r"SKU-\d{13}-\d{1,3}", gen.generate_sku())
    assert re.fullmatch(r"MNF-20260121-\d{4}", gen.generate_manifest_number())


def test_custom_prefixes():
    gen = IdentifierGenerator(tracking_prefix="XYZ", customer_prefix="CU", rng=random.Random(1))
    assert gen.generate_tracking_number().startswith("XYZ")
    assert gen.generate_customer_number(0, lambda n: False) == "CU-100001"
