from __future__ import annotations

import pytest

from state_reconciler.models import (
    DiagnosticCode,
    ImportDirective,
    MovedDirective,
    RemovedDirective,
    parse_address,
)
from state_reconciler.validation import (
    DirectiveValidationError,
    DirectiveValidator,
    ValidatedSet,
)


def addr(text: str):
    return parse_address(text)


def moved(source: str, target: str) -> MovedDirective:
    return MovedDirective(from_=addr(source), to=addr(target))


def validate_error_codes(directives) -> list[DiagnosticCode]:
    with pytest.raises(DirectiveValidationError) as excinfo:
        DirectiveValidator().validate(directives)
    return excinfo.value.codes


def test_accepts_chain_and_exposes_moves() -> None:
    validated = DirectiveValidator().validate(
        [moved("aws_instance.a", "aws_instance.b"), moved("aws_instance.b", "aws_instance.c")]
    )

    assert isinstance(validated, ValidatedSet)
    assert validated.moves[addr("aws_instance.a")] == addr("aws_instance.b")
    assert validated.chain(addr("aws_instance.a")) == [addr("aws_instance.b"), addr("aws_instance.c")]
    assert validated.chain(addr("aws_instance.c")) == []


def test_empty_directive_list_is_valid() -> None:
    validated = DirectiveValidator().validate([])

    assert dict(validated.moves) == {}
    assert validated.imports == ()
    assert validated.removals == ()


def test_identical_moves_collapse() -> None:
    validated = DirectiveValidator().validate(
        [moved("aws_instance.a", "aws_instance.b"), moved("aws_instance.a", "aws_instance.b")]
    )

    assert len(validated.moves) == 1


def test_duplicate_destination_rejected() -> None:
    codes = validate_error_codes(
        [moved("aws_instance.a", "aws_instance.c"), moved("aws_instance.b", "aws_instance.c")]
    )

    assert codes == [DiagnosticCode.DUPLICATE_DESTINATION]


def test_ambiguous_source_rejected() -> None:
    codes = validate_error_codes(
        [moved("aws_instance.a", "aws_instance.b"), moved("aws_instance.a", "aws_instance.c")]
    )

    assert codes == [DiagnosticCode.AMBIGUOUS_SOURCE]


@pytest.mark.parametrize(
    "pairs",
    [
        [("aws_instance.a", "aws_instance.a")],
        [("aws_instance.a", "aws_instance.b"), ("aws_instance.b", "aws_instance.a")],
        [
            ("aws_instance.a", "aws_instance.b"),
            ("aws_instance.b", "aws_instance.c"),
            ("aws_instance.c", "aws_instance.a"),
        ],
    ],
)
def test_cycles_of_any_length_rejected(pairs) -> None:
    codes = validate_error_codes([moved(source, target) for source, target in pairs])

    assert codes == [DiagnosticCode.MOVED_CYCLE]


def test_cycle_reported_once_with_its_members() -> None:
    with pytest.raises(DirectiveValidationError) as excinfo:
        DirectiveValidator().validate(
            [
                moved("aws_instance.x", "aws_instance.a"),
                moved("aws_instance.a", "aws_instance.b"),
                moved("aws_instance.b", "aws_instance.a"),
            ]
        )

    (diagnostic,) = excinfo.value.diagnostics
    assert diagnostic.code is DiagnosticCode.MOVED_CYCLE
    assert set(diagnostic.addresses) == {addr("aws_instance.a"), addr("aws_instance.b")}


def test_indexed_removal_forbidden() -> None:
    codes = validate_error_codes([RemovedDirective(from_=addr("aws_instance.a[0]"), destroy=False)])

    assert codes == [DiagnosticCode.INDEXED_REMOVAL_FORBIDDEN]


def test_removed_for_each_expands_key_free_template() -> None:
    validated = DirectiveValidator().validate(
        [RemovedDirective(from_=addr("aws_instance.a"), destroy=False, for_each=("x", "y"))]
    )

    assert [item.from_ for item in validated.removals] == [
        addr('aws_instance.a["x"]'),
        addr('aws_instance.a["y"]'),
    ]
    assert all(item.destroy is False for item in validated.removals)


def test_conflicting_removal_flags_rejected() -> None:
    codes = validate_error_codes(
        [
            RemovedDirective(from_=addr("aws_instance.a"), destroy=False),
            RemovedDirective(from_=addr("aws_instance.a"), destroy=True),
        ]
    )

    assert codes == [DiagnosticCode.CONFLICTING_DIRECTIVES]


def test_removal_of_moved_resource_rejected() -> None:
    codes = validate_error_codes(
        [
            moved("aws_instance.a[0]", "aws_instance.b"),
            RemovedDirective(from_=addr("aws_instance.a"), destroy=False),
        ]
    )

    assert codes == [DiagnosticCode.CONFLICTING_DIRECTIVES]


def test_import_for_each_expands_per_key() -> None:
    validated = DirectiveValidator().validate(
        [
            ImportDirective(
                to=addr("aws_instance.web"),
                id="prefix-${each.value}",
                for_each={"b": "i-2", "a": "i-1"},
            )
        ]
    )

    assert [(str(item.to), item.id) for item in validated.imports] == [
        ('aws_instance.web["a"]', "prefix-i-1"),
        ('aws_instance.web["b"]', "prefix-i-2"),
    ]


def test_import_for_each_defaults_id_to_value() -> None:
    directive = ImportDirective(to=addr("aws_instance.web"), for_each={0: "i-0", 1: "i-1"})

    assert [(item.to, item.id) for item in directive.expand()] == [
        (addr("aws_instance.web[0]"), "i-0"),
        (addr("aws_instance.web[1]"), "i-1"),
    ]


def test_duplicate_import_targets_rejected() -> None:
    codes = validate_error_codes(
        [
            ImportDirective(to=addr('aws_instance.web["a"]'), id="i-1"),
            ImportDirective(to=addr("aws_instance.web"), for_each={"a": "i-2"}),
        ]
    )

    assert codes == [DiagnosticCode.DUPLICATE_DESTINATION]


def test_import_and_move_to_same_target_rejected() -> None:
    codes = validate_error_codes(
        [
            moved("aws_instance.a", "aws_instance.b"),
            ImportDirective(to=addr("aws_instance.b"), id="i-1"),
        ]
    )

    assert codes == [DiagnosticCode.DUPLICATE_DESTINATION]


def test_reports_every_problem_in_one_pass() -> None:
    codes = validate_error_codes(
        [
            moved("aws_instance.a", "aws_instance.a"),
            moved("aws_instance.b", "aws_instance.d"),
            moved("aws_instance.c", "aws_instance.d"),
            RemovedDirective(from_=addr("aws_instance.e[1]")),
        ]
    )

    assert sorted(code.value for code in codes) == [
        "duplicate_destination",
        "indexed_removal_forbidden",
        "moved_cycle",
    ]


def test_unknown_directive_type_raises_type_error() -> None:
    with pytest.raises(TypeError):
        DirectiveValidator().validate([object()])
