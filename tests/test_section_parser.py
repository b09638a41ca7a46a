"""
Tests for splitting summaries into sections.
"""

import pytest

from comment_analyzer.core.section_parser import parse_summary_sections


def test_numbered_sections():
    sections = parse_summary_sections("1. A\nfoo\n2. B\nbar\n3. C\n4. D\n5. E")

    assert sections.to_wire() == {
        "userLikes": "A foo",
        "userDislikes": "B bar",
        "userExpectations": "C",
        "improvements": "D",
        "userProfile": "E",
    }


def test_heading_markers_win_over_nested_lists():
    text = (
        "## 1. Audience likes\n"
        "1. the editing\n"
        "2. the music\n"
        "## 2. Audience dislikes\n"
        "too long\n"
        "## 3. Audience expectations\n"
        "part two\n"
        "## 4. Improvement suggestions\n"
        "shorter intro\n"
        "## 5. Audience profile\n"
        "students\n"
    )

    sections = parse_summary_sections(text)

    assert sections.user_likes == "Audience likes 1. the editing 2. the music"
    assert sections.user_dislikes == "Audience dislikes too long"
    assert sections.user_profile == "Audience profile students"


def test_bold_markers_and_other_delimiters():
    text = "**1) Likes**\nfun\n**2) Dislikes**\nads\n**3、Wishes**\nmore\n**4: Ideas**\nfaster\n**5. Who**\nkids"

    sections = parse_summary_sections(text)

    assert sections.user_likes == "Likes fun"
    assert sections.user_expectations == "Wishes more"
    assert sections.improvements == "Ideas faster"
    assert sections.user_profile == "Who kids"


def test_markers_must_ascend():
    sections = parse_summary_sections("2. second\n1. first again\n3. third")

    assert sections.user_dislikes == "second 1. first again"
    assert sections.user_expectations == "third"
    assert sections.user_likes == ""


def test_keyword_headings_fallback():
    text = (
        "Overview of the comments\n"
        "What viewers like:\n"
        "the jokes\n"
        "the pacing\n"
        "What viewers dislike:\n"
        "the sponsor segment\n"
        "Suggestions for improvement:\n"
        "add subtitles\n"
    )

    sections = parse_summary_sections(text)

    assert sections.user_likes == "the jokes the pacing"
    assert sections.user_dislikes == "the sponsor segment"
    assert sections.improvements == "add subtitles"
    assert sections.user_expectations == ""
    assert sections.user_profile == ""


def test_chinese_keyword_headings():
    text = "### 用户喜欢的内容\n画面很美\n### 用户不喜欢的内容\n广告太多\n### 用户画像\n学生为主"

    sections = parse_summary_sections(text)

    assert sections.user_likes == "画面很美"
    assert sections.user_dislikes == "广告太多"
    assert sections.user_profile == "学生为主"


def test_partial_numbered_structure_is_kept_without_headings():
    sections = parse_summary_sections("1. great visuals\n2. audio too quiet")

    assert sections.user_likes == "great visuals"
    assert sections.user_dislikes == "audio too quiet"
    assert sections.user_expectations == ""


def test_unstructured_text_goes_to_first_section():
    text = "  People generally enjoyed the video and asked for a sequel.  "

    sections = parse_summary_sections(text)

    assert sections.user_likes == text.strip()
    assert sections.user_dislikes == ""
    assert sections.improvements == ""


@pytest.mark.parametrize("text", [None, "", "   \n\n"])
def test_empty_input(text):
    assert parse_summary_sections(text).to_wire() == {
        "userLikes": "", "userDislikes": "", "userExpectations": "", "improvements": "", "userProfile": "",
    }


@pytest.mark.parametrize("text", ["5.", "1.\n1.\n1.", "#####", "**", "1)\r\n2)", "：\n:"])
def test_malformed_input_does_not_raise(text):
    parse_summary_sections(text)


def test_deterministic():
    text = "## 1. Likes\nx\n2. y\nno more"
    assert parse_summary_sections(text) == parse_summary_sections(text)
