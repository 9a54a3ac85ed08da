"""Unit tests for placeholder-based fact protection."""

from __future__ import annotations

import re

from ingest_service.facts.protection import PLACEHOLDER_RE, protect_facts, restore_facts


def _round_trip(text: str) -> None:
    protected = protect_facts(text)
    restored = restore_facts(protected.protected_text, protected.placeholders)
    assert restored.restored_text == text
    assert restored.missing_placeholders == []


class TestProtect:
    def test_english_scenario_round_trips(self) -> None:
        text = "paid 12,500 ₪ on 01/02/2020 for 30% of damages in case 1234/56"
        protected = protect_facts(text)

        assert protected.protected_text != text
        values = set(protected.placeholders.values())
        assert "12,500 ₪" in values
        assert "01/02/2020" in values
        assert "30%" in values
        assert "case 1234/56" in values
        _round_trip(text)

    def test_hebrew_amounts_and_dates_round_trip(self) -> None:
        text = "הנתבע שילם 12,500 ₪ ביום 01/02/2020 בגין 30% מנזקיו בתיק 1234/56."
        protected = protect_facts(text)
        assert protected.protected_text != text
        assert "12,500" not in protected.protected_text
        _round_trip(text)

    def test_numbers_behind_hebrew_prefix_letters(self) -> None:
        text = "הנזק הוערך ב30% ושולם ב12,500 ₪ ביום ב01/02/2020 בשנת ל2020."
        protected = protect_facts(text)

        assert sorted(protected.placeholders.values()) == sorted(["30%", "12,500 ₪", "01/02/2020", "2020"])
        assert not re.search(r"\d", PLACEHOLDER_RE.sub("", protected.protected_text))
        _round_trip(text)

    def test_placeholder_classes(self) -> None:
        protected = protect_facts("Fee $1,200 and 2024-03-15 and 17 units")
        keys = " ".join(protected.placeholders)
        assert "__MONEY_" in keys
        assert "__DATE_" in keys
        assert "__NUM_" in keys
        for key in protected.placeholders:
            assert PLACEHOLDER_RE.fullmatch(key)

    def test_english_names(self) -> None:
        text = "הפוליסה הונפקה לטובת John Doe על ידי המבטחת."
        protected = protect_facts(text)
        assert any("John Doe" in v for v in protected.placeholders.values())
        _round_trip(text)

    def test_hebrew_names_after_role_words(self) -> None:
        text = "התובעת שרה לוי הגישה את התביעה נגד המבטחת."
        protected = protect_facts(text)
        assert any("שרה לוי" in v for v in protected.placeholders.values())
        _round_trip(text)

    def test_hebrew_titles_and_initials(self) -> None:
        text = 'מר משה כהן העיד בפני ד"ר א. ב. בבית המשפט.'
        protected = protect_facts(text)
        values = list(protected.placeholders.values())
        assert any("מר משה כהן" in v for v in values)
        assert any("א. ב." in v for v in values)
        _round_trip(text)

    def test_hebrew_number_words(self) -> None:
        text = "התובעת טוענת לנכות רפואית בשיעור של שלושים אחוז ולנזק ממוני בסך של מאתיים חמישים אלף שקלים."
        protected = protect_facts(text)
        values = list(protected.placeholders.values())
        assert "שלושים אחוז" in values
        assert "מאתיים חמישים אלף שקלים" in values
        _round_trip(text)

    def test_generic_hebrew_phrases_are_left_alone(self) -> None:
        text = "בית משפט שלום בחן את האירוע שהתרחש בחדר מיון של חברת ביטוח גדולה."
        protected = protect_facts(text)
        assert protected.placeholders == {}
        assert protected.protected_text == text

    def test_never_rewraps_placeholders(self) -> None:
        first = protect_facts("paid 12,500 ₪ on 01/02/2020 for 30% of damages in case 1234/56")
        second = protect_facts(first.protected_text)
        assert second.placeholders == {}
        assert second.protected_text == first.protected_text

    def test_keys_skip_literal_placeholders_in_input(self) -> None:
        text = "see __NUM_1__ and 42 more"
        protected = protect_facts(text)
        assert "__NUM_1__" not in protected.placeholders
        assert list(protected.placeholders.values()) == ["42"]
        _round_trip(text)

    def test_counters_are_per_call(self) -> None:
        a = protect_facts("total 17")
        b = protect_facts("total 17")
        assert a.placeholders == b.placeholders

    def test_empty_text(self) -> None:
        protected = protect_facts("")
        assert protected.protected_text == ""
        assert protected.placeholders == {}


class TestRestore:
    def test_detects_dropped_placeholder(self) -> None:
        text = "הסכום הנתבע עומד על 250,000 ₪ נכון ל-01.01.2024."
        protected = protect_facts(text)
        money_key = next(k for k in protected.placeholders if k.startswith("__MONEY_"))

        tampered = protected.protected_text.replace(money_key, "")
        restored = restore_facts(tampered, protected.placeholders)

        assert money_key in restored.missing_placeholders
        assert not restored.intact

    def test_each_single_removal_is_reported(self) -> None:
        protected = protect_facts("paid 12,500 ₪ on 01/02/2020 for 30% in case 1234/56")
        for key in protected.placeholders:
            restored = restore_facts(protected.protected_text.replace(key, ""), protected.placeholders)
            assert restored.missing_placeholders == [key]

    def test_restores_reordered_placeholders(self) -> None:
        protected = protect_facts("paid 12,500 ₪ on 01/02/2020")
        keys = PLACEHOLDER_RE.findall(protected.protected_text)
        rewritten = f"On {keys[1]} a payment of {keys[0]} was made"
        restored = restore_facts(rewritten, protected.placeholders)
        assert restored.restored_text == "On 01/02/2020 a payment of 12,500 ₪ was made"
        assert restored.intact

    def test_empty_map_passes_text_through(self) -> None:
        restored = restore_facts("nothing to do", {})
        assert restored.restored_text == "nothing to do"
        assert restored.missing_placeholders == []

    def test_empty_rewrite_reports_everything_missing(self) -> None:
        protected = protect_facts("paid 12,500 ₪ on 01/02/2020")
        restored = restore_facts("", protected.placeholders)
        assert sorted(restored.missing_placeholders) == sorted(protected.placeholders)

    def test_restored_values_are_not_rescanned(self) -> None:
        placeholders = {"__NUM_1__": "__NUM_2__", "__NUM_2__": "7"}
        restored = restore_facts("__NUM_1__ then __NUM_2__", placeholders)
        assert restored.restored_text == "__NUM_2__ then 7"
