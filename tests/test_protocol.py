import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parent.parent))

from depgraph.errors import ProtocolError
from depgraph.protocol import (
    Dependency,
    DependencyKind,
    Item,
    decode_item,
    decode_outcome,
    encode_item,
    encode_outcome,
)


def test_decode_item_reads_dependency_list():
    item = decode_item(b'["a.js", [{"k":1,"n":"module_a","l":1,"c":0}]]')

    assert item == Item("a.js", [Dependency(kind=1, name="module_a", line=1, column=0)])
    file, outcome = item
    assert file == "a.js"
    assert outcome[0].base_kind is DependencyKind.IMPORT
    assert item.ok and item.error is None


def test_decode_item_keeps_error_string_as_outcome():
    item = decode_item('["b.ts", "can not open file b.ts"]')

    assert not item.ok
    assert item.error == "can not open file b.ts"
    assert item.dependencies == []


def test_dynamic_import_from_flag_or_kind_bit():
    by_flag = Dependency.from_dict({"k": 1, "n": "x", "d": True, "l": 3, "c": 4})
    by_bit = Dependency.from_dict({"k": 9, "n": "x", "l": 3, "c": 4})
    static = Dependency.from_dict({"k": 0, "n": "x", "l": 3, "c": 4})

    assert by_flag.is_dynamic
    assert by_bit.is_dynamic and by_bit.base_kind is DependencyKind.IMPORT
    assert not static.is_dynamic and static.base_kind is DependencyKind.REQUIRE


def test_reexport_specifiers_are_decoded():
    dep = Dependency.from_dict({"k": 2, "n": "./dir/module_c", "l": 4, "c": 40, "e": ["c:b", "ModuleC:default"]})

    assert dep.exports == ("c:b", "ModuleC:default")
    assert "export" in dep.pretty()


@pytest.mark.parametrize(
    "outcome",
    [
        "failed to process js file",
        [],
        [
            Dependency(kind=0, name="fs", line=1, column=8),
            Dependency(kind=9, name="./lazy", line=2, column=12, dynamic=True),
            Dependency(kind=2, name="d", line=3, column=14, exports=("*:*",)),
        ],
    ],
)
def test_outcome_round_trip(outcome):
    assert decode_outcome(encode_outcome(outcome)) == outcome
    assert decode_item(encode_item(("f.ts", outcome))) == Item("f.ts", outcome)


def test_optional_fields_are_omitted_on_encode():
    assert Dependency(kind=1, name="m", line=1, column=0).to_dict() == {"k": 1, "n": "m", "l": 1, "c": 0}


@pytest.mark.parametrize(
    "line",
    [
        b"not json",
        b'{"file": "a.js"}',
        b'["a.js"]',
        b'["a.js", [], "extra"]',
        b'[1, []]',
        b'["a.js", 42]',
        b'["a.js", [{"k": "1", "n": "m", "l": 1, "c": 0}]]',
        b'["a.js", [{"k": 1, "l": 1, "c": 0}]]',
        b'["a.js", [{"k": true, "n": "m", "l": 1, "c": 0}]]',
        b'["a.js", [{"k": 1, "n": "m", "l": 1, "c": 0, "d": "yes"}]]',
        b'["a.js", ["m"]]',
    ],
)
def test_malformed_lines_raise_protocol_error(line):
    with pytest.raises(ProtocolError) as excinfo:
        decode_item(line)

    assert excinfo.value.line == line
