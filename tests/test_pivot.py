from __future__ import annotations

from itertools import permutations

from contact_snapshot.models import Role
from contact_snapshot.pivot.model import Counselor, build_pivot

from conftest import cell


def test_admin_sees_every_counselor(sample_cells, window) -> None:
    model = build_pivot(sample_cells, Role.ADMIN, window=window)

    assert [c.name for c in model.counselors] == ["Ann", "Bob"]
    assert model.month_totals["2024-09"] == 5
    assert model.month_totals["2024-10"] == 5
    assert model.grand_total == 10
    assert model.cells_by_counselor["C1"]["2024-09"].total == 5
    assert dict(model.cells_by_counselor["C1"]["2024-09"].by_type) == {"meeting": 3, "email": 2}
    assert model.counselor_totals == {"C1": 5, "C2": 5}
    assert model.months == tuple(window)


def test_counselor_sees_only_themselves(sample_cells) -> None:
    model = build_pivot(sample_cells, "counselor", identity="C2")

    assert model.counselors == (Counselor(id="C2", name="Bob"),)
    assert model.grand_total == 5
    assert "C1" not in model.cells_by_counselor


def test_counselor_without_contacts_gets_empty_model(sample_cells) -> None:
    model = build_pivot(sample_cells, Role.COUNSELOR, identity="C9")
    assert model.is_empty
    assert model.grand_total == 0


def test_totals_are_consistent(sample_cells) -> None:
    cells = sample_cells + [cell("C3", "cy", "2025-06", "general", 7), cell("C2", "Bob", "2024-09", "email", 1)]
    model = build_pivot(cells, Role.ADMIN)

    cell_sum = sum(c.total for months in model.cells_by_counselor.values() for c in months.values())
    assert model.grand_total == sum(model.month_totals.values()) == cell_sum == sum(c.count for c in cells)
    for months in model.cells_by_counselor.values():
        for mc in months.values():
            assert mc.total == sum(mc.by_type.values())


def test_fold_is_independent_of_input_order(sample_cells, window) -> None:
    models = [build_pivot(list(p), Role.ADMIN, window=window) for p in permutations(sample_cells)]
    assert all(m == models[0] for m in models)


def test_counselors_sorted_case_insensitively_ties_by_id() -> None:
    cells = [
        cell("C3", "bob", "2024-09", "email", 1),
        cell("C2", "Ann", "2024-09", "email", 1),
        cell("C1", "ann", "2024-09", "email", 1),
    ]
    model = build_pivot(cells, Role.ADMIN)
    assert [c.id for c in model.counselors] == ["C1", "C2", "C3"]


def test_empty_input_yields_zero_model(window) -> None:
    model = build_pivot([], Role.ADMIN, window=window)
    assert model.counselors == ()
    assert model.grand_total == 0
    assert dict(model.month_totals) == {}
    assert model.count("C1", "2024-09") == 0


def test_months_default_to_months_present() -> None:
    model = build_pivot([cell("C1", "Ann", "2025-01", "email", 1), cell("C1", "Ann", "2024-09", "email", 1)], Role.ADMIN)
    assert [m.key for m in model.months] == ["2024-09", "2025-01"]


def test_cells_outside_window_are_not_counted(window) -> None:
    cells = [
        cell("C1", "Ann", "2024-09", "email", 1),
        cell("C1", "Ann", "2024-07", "email", 4),
    ]
    model = build_pivot(cells, Role.ADMIN, window=window)

    assert model.grand_total == 1
    assert sum(model.month_totals.values()) == 1
    assert model.counselor_totals["C1"] == 1
    assert "2024-07" not in model.month_totals
    assert model.count("C1", "2024-07") == 0
