"""
Section editing helpers — new sections, reordering, pricing mode toggle, item edits.
"""

import re

from outvoice.models import SectionType
from outvoice.schemas import ProposalSection
from outvoice.sections import (
    DEFAULT_PRICING_TEXT,
    add_pricing_item,
    append_section,
    generate_proposal_id,
    generate_section_id,
    new_pricing_item,
    new_section,
    remove_pricing_item,
    remove_section,
    reorder_sections,
    toggle_pricing_mode,
    update_pricing_item,
)


def test_generated_ids():
    assert re.match(r"^proposal-\d+-[a-z0-9]{9}$", generate_proposal_id())
    assert generate_section_id() != generate_section_id()


def test_new_section_defaults():
    section = new_section("pricing", order=2)
    assert section.type == SectionType.PRICING
    assert section.title == "Pricing Section"
    assert section.content == ""
    assert section.order == 2
    assert section.pricing_data is None


def test_append_and_remove(proposal):
    sections = append_section(proposal.sections, SectionType.TIMELINE)
    assert len(sections) == 3
    assert sections[-1].order == 2
    assert sections[-1].title == "Timeline Section"

    remaining = remove_section(sections, "section-about")
    assert [s.id for s in remaining] == ["section-pricing", sections[-1].id]
    # Input untouched
    assert len(proposal.sections) == 2


def test_reorder_sections(proposal):
    reordered = reorder_sections(proposal.sections, ["section-pricing", "section-about"])
    assert [(s.id, s.order) for s in reordered] == [("section-pricing", 0), ("section-about", 1)]


def test_reorder_keeps_unlisted_after_listed():
    sections = [ProposalSection(id=name, order=i) for i, name in enumerate("abc")]
    reordered = reorder_sections(sections, ["c"])
    assert [s.id for s in reordered] == ["c", "a", "b"]
    assert [s.order for s in reordered] == [0, 1, 2]


# --- Pricing mode toggle ---

def test_toggle_structured_to_text_and_back(proposal):
    structured = proposal.sections[1]
    text_mode = toggle_pricing_mode(structured)
    assert text_mode.pricing_data is None
    assert text_mode.saved_pricing_data == structured.pricing_data
    assert text_mode.content == DEFAULT_PRICING_TEXT

    restored = toggle_pricing_mode(text_mode)
    assert restored.content == ""
    assert [i.id for i in restored.pricing_data.items] == ["item-1", "item-2"]
    assert restored.pricing_data.total == 350


def test_toggle_to_text_keeps_existing_content(pricing_data):
    section = ProposalSection(id="p", type="pricing", content="Old notes", pricing_data=pricing_data)
    text_mode = toggle_pricing_mode(section)
    assert text_mode.pricing_data is None
    assert text_mode.content == "Old notes"


def test_toggle_text_without_saved_table_starts_empty():
    section = ProposalSection(id="p", type="pricing", content="Call us")
    structured = toggle_pricing_mode(section)
    assert structured.pricing_data.items == []
    assert structured.pricing_data.total == 0
    assert structured.pricing_data.currency == "USD"
    assert structured.content == ""


def test_toggle_ignores_non_pricing_sections():
    section = ProposalSection(id="a", type="about", content="Hello")
    assert toggle_pricing_mode(section) == section


# --- Item edits ---

def test_add_item_recalculates(pricing_data):
    item = new_pricing_item("Hosting", quantity=12, unit_price=20)
    result = add_pricing_item(pricing_data, item)
    assert len(result.items) == 3
    assert result.items[-1].subtotal == 240
    assert result.total == 590
    assert len(pricing_data.items) == 2


def test_add_blank_item(pricing_data):
    result = add_pricing_item(pricing_data)
    blank = result.items[-1]
    assert blank.id.startswith("item-")
    assert (blank.quantity, blank.unit_price, blank.subtotal) == (1, 0, 0)


def test_update_item_recalculates(pricing_data):
    result = update_pricing_item(pricing_data, "item-2", quantity=2, discount=10)
    assert result.items[1].subtotal == 450
    assert result.total == 550


def test_update_unknown_item_changes_nothing(pricing_data):
    result = update_pricing_item(pricing_data, "nope", quantity=99)
    assert result.total == 350


def test_remove_item_recalculates(pricing_data):
    result = remove_pricing_item(pricing_data, "item-1")
    assert [i.id for i in result.items] == ["item-2"]
    assert result.total == 250
