"""Unit tests for spintax expansion."""

import random

import pytest

from seo_engine.modules.seo.spintax import (
    choose_spintax_indices,
    process_spintax,
    render_entry_text,
)
from tests.fixtures.factories import SeoUrlEntryFactory

TEMPLATES = {"intro": "Great deal|Best price|Top offer"}


@pytest.mark.unit
class TestProcessSpintax:
    def test_single_index_substituted(self) -> None:
        result = process_spintax("{intro} on this car", TEMPLATES, {"intro": [1]})

        assert result == "Best price on this car"

    def test_multiple_indices_concatenated_in_order(self) -> None:
        result = process_spintax("{intro}", TEMPLATES, {"intro": [2, 0]})

        assert result == "Top offerGreat deal"

    def test_out_of_range_and_non_integer_indices_skipped(self) -> None:
        result = process_spintax("[{intro}]", TEMPLATES, {"intro": [7, -1, "1", True, 0]})

        assert result == "[Great deal]"

    def test_key_without_choices_left_untouched(self) -> None:
        result = process_spintax("{intro} / {outro}", {**TEMPLATES, "outro": "a|b"}, {"intro": [0]})

        assert result == "Great deal / {outro}"

    def test_choices_that_are_not_a_list_left_untouched(self) -> None:
        result = process_spintax("{intro}", TEMPLATES, {"intro": 1})

        assert result == "{intro}"

    def test_missing_templates_returns_content(self) -> None:
        assert process_spintax("{intro}", None, {"intro": [0]}) == "{intro}"
        assert process_spintax(None, TEMPLATES, {"intro": [0]}) is None
        assert process_spintax("", TEMPLATES, {"intro": [0]}) == ""

    def test_missing_data_leaves_placeholders(self) -> None:
        assert process_spintax("{intro}", TEMPLATES, None) == "{intro}"


@pytest.mark.unit
class TestRenderEntryText:
    def test_uses_entry_choices(self) -> None:
        entry = SeoUrlEntryFactory(content_templates=TEMPLATES, content_data={"intro": [2]})

        assert render_entry_text(entry, "{intro}!") == "Top offer!"

    def test_explicit_choices_override_entry(self) -> None:
        entry = SeoUrlEntryFactory(content_templates=TEMPLATES, content_data={"intro": [2]})

        assert render_entry_text(entry, "{intro}", {"intro": [0]}) == "Great deal"

    def test_same_entry_renders_identically(self) -> None:
        entry = SeoUrlEntryFactory(content_templates=TEMPLATES, content_data={"intro": [1]})

        assert render_entry_text(entry, "{intro}") == render_entry_text(entry, "{intro}")


@pytest.mark.unit
class TestChooseSpintaxIndices:
    def test_one_valid_index_per_key(self) -> None:
        templates = {"intro": "a|b|c", "outro": "x|y"}

        choices = choose_spintax_indices(templates, random.Random(42))

        assert set(choices) == {"intro", "outro"}
        assert len(choices["intro"]) == 1
        assert 0 <= choices["intro"][0] < 3
        assert 0 <= choices["outro"][0] < 2

    def test_seeded_rng_is_reproducible(self) -> None:
        first = choose_spintax_indices(TEMPLATES, random.Random(7))
        second = choose_spintax_indices(TEMPLATES, random.Random(7))

        assert first == second

    def test_single_alternative_always_zero(self) -> None:
        assert choose_spintax_indices({"k": "only"}, random.Random(1)) == {"k": [0]}
