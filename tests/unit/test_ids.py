import re

from llm_diagrams.ids import new_id


def test_new_id_has_prefix_and_hex_suffix() -> None:
    value = new_id("req")
    assert re.fullmatch(r"req_[0-9a-f]{32}", value)


def test_new_id_is_unique() -> None:
    assert len({new_id("req") for _ in range(200)}) == 200
