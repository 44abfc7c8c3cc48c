"""Tests for the title priority chip / visible / dimmed split."""

from title_display import VISIBLE_TITLE_LENGTH, split_index, split_title


def test_split_index_fits_within_budget():
    assert split_index("Ceramic mug", 40) == len("Ceramic mug")


def test_split_index_prefers_last_space_within_budget():
    assert split_index("aaaa bbbb cccc", 10) == 9


def test_split_index_falls_back_to_budget_without_space():
    assert split_index("abcdefghijkl", 5) == 5
    # a space only at index 0 does not count
    assert split_index(" abcdefgh", 4) == 4


def test_split_index_non_positive_budget():
    assert split_index("abcdef", 0) == 0
    assert split_index("abcdef", -3) == 0


def test_priority_keyword_becomes_chip():
    title = "Personalized Gift, Wood Sign, Home Decor"
    display = split_title(title, ["wood sign"], "Personalized Gift")

    assert display.priority_chip == "Personalized Gift"
    assert display.visible_text == ", Wood Sign, Home Decor"
    assert len(display.visible_text) <= VISIBLE_TITLE_LENGTH - len("Personalized Gift")
    assert display.hidden_text == ""
    assert display.hidden == []
    assert any(s.keyword == "wood sign" for s in display.visible)


def test_priority_split_does_not_cut_mid_word():
    title = "Personalized Gift, Custom Wood Sign, Rustic Home Decor for Family"
    display = split_title(title, [], "Personalized Gift")

    assert display.visible_text == ", Custom Wood Sign,"
    assert display.hidden_text == " Rustic Home Decor for Family"
    assert display.priority_chip + display.visible_text + display.hidden_text == title


def test_priority_match_is_case_insensitive():
    display = split_title("personalized gift, wood sign", [], "Personalized Gift")
    assert display.priority_chip == "Personalized Gift"
    assert display.visible_text == ", wood sign"


def test_priority_keyword_not_at_start_gives_no_chip():
    title = "Wood Sign, Personalized Gift"
    display = split_title(title, [], "Personalized Gift")
    assert display.priority_chip is None
    assert display.visible_text == title


def test_long_title_without_priority():
    title = "Handmade Ceramic Coffee Mug, Stoneware Pottery Cup, Gift for Her"
    display = split_title(title, ["coffee mug"])

    assert len(display.visible_text) <= VISIBLE_TITLE_LENGTH
    assert display.visible_text + display.hidden_text == title
    assert display.hidden_text.startswith(" ")
    assert "".join(s.text for s in display.hidden) == display.hidden_text


def test_to_dict_uses_wire_keys():
    data = split_title("Ceramic Mug", ["mug"]).to_dict()
    assert set(data) == {"priorityChip", "visibleText", "hiddenText", "visible", "hidden"}
    assert data["hidden"] == []
