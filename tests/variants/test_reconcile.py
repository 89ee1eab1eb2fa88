"""Tests for variant reconciliation and field resolution."""

import pytest

from productbuilder.variants import (
    ExistingVariant,
    Option,
    VariantInput,
    Weight,
    default_variant_update,
    generate_combinations,
    reconcile,
    resolve_fields,
    zip_variant_inputs,
)

OPTIONS = [Option.of("Size", ["S", "M", "L"]), Option.of("Color", ["Red", "Blue"])]


def existing(variant_id: str, **selected: str) -> ExistingVariant:
    return ExistingVariant.from_api(
        {
            "id": variant_id,
            "selectedOptions": [{"name": k, "value": v} for k, v in selected.items()],
        }
    )


# ============================================================================
# Field Resolution
# ============================================================================


class TestResolveFields:
    """Tests for the per-variant fallback chain."""

    def test_own_values_win(self) -> None:
        """Values given for the index are used as-is."""
        inputs = [
            VariantInput(sku="A", price="10.00"),
            VariantInput(sku="B", barcode="123", price="12.00", cost="4.00"),
        ]

        fields = resolve_fields(1, inputs)

        assert fields.sku == "B"
        assert fields.barcode == "123"
        assert fields.price == "12.00"
        assert fields.cost == "4.00"

    def test_prices_fall_back_to_base(self) -> None:
        """Missing prices come from the first input."""
        inputs = [
            VariantInput(price="10.00", compare_at_price="15.00", cost="3.00"),
            VariantInput(sku="B"),
        ]

        fields = resolve_fields(1, inputs)

        assert fields.price == "10.00"
        assert fields.compare_at_price == "15.00"
        assert fields.cost == "3.00"

    def test_sku_and_barcode_do_not_fall_back(self) -> None:
        """Identifiers are never copied from the base input."""
        inputs = [VariantInput(sku="A", barcode="111"), VariantInput()]

        fields = resolve_fields(1, inputs)

        assert fields.sku == ""
        assert fields.barcode == ""

    def test_index_past_inputs_uses_base_price(self) -> None:
        """Indices beyond the inputs resolve through the base input."""
        fields = resolve_fields(5, [VariantInput(price="9.99")])

        assert fields.price == "9.99"
        assert fields.sku == ""

    def test_no_inputs_uses_defaults(self) -> None:
        """With no inputs at all, price is 0.00 and optional prices are absent."""
        fields = resolve_fields(0, [])

        assert fields.price == "0.00"
        assert fields.compare_at_price is None
        assert fields.cost is None

    def test_empty_string_counts_as_missing(self) -> None:
        """Blank prices fall back like missing ones."""
        inputs = [VariantInput(price="10.00"), VariantInput(price="")]

        assert resolve_fields(1, inputs).price == "10.00"


class TestBulkInput:
    """Tests for rendering mutation inputs."""

    def test_absent_fields_are_omitted(self) -> None:
        """compareAtPrice, cost and measurement are left out when unset."""
        payload = resolve_fields(0, [VariantInput(sku="A", price="5.00")]).to_bulk_input()

        assert payload == {
            "price": "5.00",
            "barcode": "",
            "inventoryItem": {"tracked": True, "sku": "A"},
        }

    def test_full_payload(self) -> None:
        """Every resolved field is rendered."""
        fields = resolve_fields(
            0,
            [VariantInput(sku="A", barcode="1", price="5.00", compare_at_price="8.00", cost="2.00")],
            Weight(0.5, "KILOGRAMS"),
        )

        assert fields.to_bulk_input() == {
            "price": "5.00",
            "barcode": "1",
            "compareAtPrice": "8.00",
            "inventoryItem": {
                "tracked": True,
                "sku": "A",
                "cost": "2.00",
                "measurement": {"weight": {"value": 0.5, "unit": "KILOGRAMS"}},
            },
        }


class TestWeight:
    """Tests for product weight."""

    def test_requires_value_and_unit(self) -> None:
        """Weight is only built when both parts are present."""
        assert Weight.maybe(1.0, None) is None
        assert Weight.maybe(None, "GRAMS") is None
        assert Weight.maybe(250, "GRAMS") == Weight(250, "GRAMS")

    def test_rejects_unknown_unit(self) -> None:
        """Only Shopify weight units are accepted."""
        with pytest.raises(ValueError):
            Weight(1.0, "STONE")


class TestZipVariantInputs:
    """Tests for adapting the wizard's parallel arrays."""

    def test_zips_by_index(self) -> None:
        """Arrays of different lengths zip to the longest."""
        inputs = zip_variant_inputs(
            skus=["A", "B", "C"],
            barcodes=["1"],
            pricing=[{"price": 10, "compareAtPrice": "", "cost": "2.5"}],
        )

        assert len(inputs) == 3
        assert inputs[0] == VariantInput(sku="A", barcode="1", price="10", cost="2.5")
        assert inputs[2] == VariantInput(sku="C")


# ============================================================================
# Reconciliation
# ============================================================================


class TestReconcile:
    """Tests for splitting combinations into updates and creates."""

    def test_all_new(self) -> None:
        """Without existing variants everything is created."""
        combos = generate_combinations(OPTIONS)

        result = reconcile(combos, [], [])

        assert result.to_update == []
        assert [c.combination.title for c in result.to_create] == [c.title for c in combos]

    def test_match_ignores_pair_order(self) -> None:
        """Existing variants match whatever order their options are listed in."""
        combos = generate_combinations(OPTIONS)
        variants = [existing("gid://v/1", Color="Blue", Size="M")]

        result = reconcile(combos, variants, [])

        assert len(result.to_update) == 1
        assert result.to_update[0].id == "gid://v/1"
        assert result.to_update[0].combination.title == "M / Blue"
        assert len(result.to_create) == 5

    def test_partial_match_is_not_a_match(self) -> None:
        """A variant with only some of the pairs is not reused."""
        combos = generate_combinations(OPTIONS)
        variants = [existing("gid://v/1", Size="S")]

        result = reconcile(combos, variants, [])

        assert result.to_update == []
        assert len(result.to_create) == 6

    def test_fields_follow_combination_index(self) -> None:
        """Input i belongs to combination i."""
        combos = generate_combinations(OPTIONS)
        inputs = [VariantInput(sku=f"SKU-{i}", price="10.00") for i in range(6)]
        variants = [existing("gid://v/1", Size="M", Color="Red")]

        result = reconcile(combos, variants, inputs)

        assert result.to_update[0].fields.sku == "SKU-3"
        assert [c.fields.sku for c in result.to_create] == [
            "SKU-0",
            "SKU-1",
            "SKU-2",
            "SKU-4",
            "SKU-5",
        ]

    def test_weight_applied_to_every_variant(self) -> None:
        """Updates and creates carry the product weight."""
        combos = generate_combinations(OPTIONS)
        weight = Weight(200, "GRAMS")

        result = reconcile(combos, [existing("gid://v/1", Size="S", Color="Red")], [], weight)

        assert all(u.fields.weight == weight for u in result.to_update)
        assert all(c.fields.weight == weight for c in result.to_create)

    def test_completeness(self) -> None:
        """Every combination lands in exactly one list."""
        combos = generate_combinations(OPTIONS)
        variants = [
            existing("gid://v/1", Size="S", Color="Red"),
            existing("gid://v/2", Size="L", Color="Blue"),
            existing("gid://v/3", Size="XL", Color="Red"),
        ]

        result = reconcile(combos, variants, [])

        assert result.total == len(combos)
        covered = [u.combination.match_key for u in result.to_update] + [
            c.combination.match_key for c in result.to_create
        ]
        assert sorted(covered, key=sorted) == sorted(
            [c.match_key for c in combos], key=sorted
        )

    def test_idempotent_after_creates(self) -> None:
        """Once the creates exist, a second run only updates."""
        combos = generate_combinations(OPTIONS)
        first = reconcile(combos, [existing("gid://v/0", Size="S", Color="Red")], [])

        persisted = [existing("gid://v/0", Size="S", Color="Red")] + [
            ExistingVariant(id=f"gid://v/new-{i}", selected_options=c.combination.match_key)
            for i, c in enumerate(first.to_create)
        ]
        second = reconcile(combos, persisted, [])

        assert second.to_create == []
        assert len(second.to_update) == len(combos)

    def test_default_variant_update(self) -> None:
        """Products without options update their single variant from input 0."""
        update = default_variant_update(
            "gid://v/default", [VariantInput(sku="ONE", price="3.00")], Weight(1, "POUNDS")
        )

        assert update.combination is None
        assert update.to_bulk_input()["id"] == "gid://v/default"
        assert update.to_bulk_input()["inventoryItem"]["sku"] == "ONE"
        assert update.to_bulk_input()["inventoryItem"]["measurement"] == {
            "weight": {"value": 1, "unit": "POUNDS"}
        }
