"""Tests for discussion_sync.converters: headers, images and clamping."""

import pytest

from discussion_sync.converters import (
    CONTINUATION_MARKER,
    DISCORD_MAX_LENGTH,
    GITHUB_MAX_LENGTH,
    RenderedMessage,
    SyncDirection,
    attribution_header,
    image_normalize,
    images_to_chat,
    images_to_forum,
    is_attributed,
    is_image_url,
    length_clamp,
    max_length_for,
    render_message,
)

# -------------------------------------------------------------------------
# Attribution headers
# -------------------------------------------------------------------------


class TestAttributionHeader:
    def test_to_chat_wraps_link_in_angle_brackets(self):
        header = attribution_header(
            SyncDirection.TO_CHAT, "octocat", "https://github.com/o/r/discussions/1"
        )
        assert header == (
            "💬 **octocat** on [GitHub](<https://github.com/o/r/discussions/1>) wrote:\n"
        )

    def test_to_forum_ends_with_blank_line(self):
        header = attribution_header(
            SyncDirection.TO_FORUM, "wumpus", "https://discord.com/channels/1/2/3"
        )
        assert header == (
            "💬 **wumpus** on [Discord](https://discord.com/channels/1/2/3) wrote:\n\n"
        )

    def test_author_markdown_is_escaped(self):
        header = attribution_header(SyncDirection.TO_CHAT, "__init__", "u")
        assert "**\\_\\_init\\_\\_**" in header

    def test_blank_author_becomes_unknown(self):
        header = attribution_header(SyncDirection.TO_FORUM, "  ", "u")
        assert header.startswith("💬 **unknown** on")

    def test_none_direction_raises(self):
        with pytest.raises(ValueError, match="No attribution header"):
            attribution_header(SyncDirection.NONE, "a", "u")


class TestIsAttributed:
    @pytest.mark.parametrize(
        "direction", [SyncDirection.TO_CHAT, SyncDirection.TO_FORUM]
    )
    def test_recognizes_own_headers(self, direction):
        text = attribution_header(direction, "some_user", "https://x.io/1") + "hi"
        assert is_attributed(text)

    def test_plain_text_is_not_attributed(self):
        assert not is_attributed("hello there")

    def test_header_must_be_at_start(self):
        text = "quote:\n💬 **a** on [GitHub](<https://x.io>) wrote:\nhi"
        assert not is_attributed(text)


# -------------------------------------------------------------------------
# Image conversion
# -------------------------------------------------------------------------


class TestImagesToChat:
    def test_markdown_image_becomes_isolated_url(self):
        assert (
            images_to_chat("look ![shot](https://x.io/a.png) here")
            == "look\nhttps://x.io/a.png\nhere"
        )

    def test_image_already_on_own_line_gets_no_extra_breaks(self):
        assert (
            images_to_chat("a\n![x](https://x.io/a.png)\nb")
            == "a\nhttps://x.io/a.png\nb"
        )

    def test_html_img_uses_src(self):
        assert (
            images_to_chat('<img src="https://x.io/b.jpg" alt="b">')
            == "https://x.io/b.jpg"
        )

    def test_html_img_unquoted_src(self):
        url = "https://github.com/user-attachments/assets/abc"
        assert (
            images_to_chat(f'text <img alt="a" src={url}> more')
            == f"text\n{url}\nmore"
        )

    def test_html_img_single_quoted_src(self):
        assert images_to_chat("<img src='https://x.io/b.jpg'>") == "https://x.io/b.jpg"

    def test_attachment_url_is_isolated(self):
        url = "https://github.com/user-attachments/assets/abc-123"
        assert images_to_chat(f"see {url} now") == f"see\n{url}\nnow"

    def test_plain_link_is_untouched(self):
        assert images_to_chat("[docs](https://x.io/docs)") == "[docs](https://x.io/docs)"


class TestImagesToForum:
    def test_bare_image_url_becomes_markdown(self):
        url = "https://cdn.discordapp.com/attachments/1/2/cat.png"
        assert images_to_forum(url) == f"![Image]({url})"

    def test_trailing_punctuation_stays_outside(self):
        assert (
            images_to_forum("see https://x.io/a.png.")
            == "see ![Image](https://x.io/a.png)."
        )

    def test_query_string_kept(self):
        url = "https://cdn.discordapp.com/a.PNG?ex=1"
        assert images_to_forum(url) == f"![Image]({url})"

    def test_non_image_url_is_untouched(self):
        assert images_to_forum("read https://x.io/page.html") == "read https://x.io/page.html"

    def test_existing_markdown_image_is_not_wrapped_twice(self):
        assert images_to_forum("![Image](https://x.io/a.png)") == "![Image](https://x.io/a.png)"

    def test_html_img_keeps_alt(self):
        assert (
            images_to_forum('<img src="https://x.io/a.png" alt="diagram">')
            == "![diagram](https://x.io/a.png)"
        )

    def test_html_img_unquoted_attributes(self):
        assert (
            images_to_forum("<img alt=chart src=https://x.io/a.png>")
            == "![chart](https://x.io/a.png)"
        )

    def test_angle_bracket_url_is_untouched(self):
        assert images_to_forum("<https://x.io/a.png>") == "<https://x.io/a.png>"


class TestForumStyleBodiesToChat:
    """Chat-bound conversion of bodies already in forum image syntax."""

    @pytest.mark.parametrize(
        "body,urls",
        [
            (
                "see https://x.io/a.png and https://x.io/b.jpg ok",
                ["https://x.io/a.png", "https://x.io/b.jpg"],
            ),
            (
                '<img alt="shot" src="https://x.io/c.png"> caption',
                ["https://x.io/c.png"],
            ),
            (
                "![a](https://x.io/a.png)![b](https://x.io/b.gif)",
                ["https://x.io/a.png", "https://x.io/b.gif"],
            ),
            (
                "done: https://cdn.discordapp.com/attachments/1/2/cat.png.",
                ["https://cdn.discordapp.com/attachments/1/2/cat.png"],
            ),
        ],
    )
    def test_every_url_ends_up_on_its_own_line(self, body, urls):
        lines = images_to_chat(images_to_forum(body)).split("\n")

        for url in urls:
            assert url in lines


class TestImageNormalize:
    def test_dispatches_by_direction(self):
        body = "![a](https://x.io/a.png)"
        assert image_normalize(SyncDirection.TO_CHAT, body) == "https://x.io/a.png"
        assert image_normalize(SyncDirection.TO_FORUM, body) == body

    def test_none_direction_is_identity(self):
        assert image_normalize(SyncDirection.NONE, "https://x.io/a.png") == "https://x.io/a.png"


class TestIsImageUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://x.io/a.png",
            "https://x.io/a.JPEG",
            "https://x.io/a.webp#frag",
            "https://github.com/user-attachments/assets/0f1e-22",
        ],
    )
    def test_image_urls(self, url):
        assert is_image_url(url)

    @pytest.mark.parametrize(
        "url", ["https://x.io/", "https://x.io/a.html", "https://x.io/v1.2/path"]
    )
    def test_non_image_urls(self, url):
        assert not is_image_url(url)


# -------------------------------------------------------------------------
# Length clamping
# -------------------------------------------------------------------------


class TestLengthClamp:
    def test_short_message_unchanged(self):
        assert length_clamp(RenderedMessage("h:", "abcdef"), 8) == "h:abcdef"

    def test_truncation_hits_ceiling_exactly(self):
        result = length_clamp(RenderedMessage("h:", "x" * 50), 20)
        assert len(result) == 20
        assert result.startswith("h:")
        assert result.endswith(CONTINUATION_MARKER)

    def test_no_marker_without_truncation(self):
        result = length_clamp(RenderedMessage("h:", "x" * 18), 20)
        assert not result.endswith(CONTINUATION_MARKER)

    def test_empty_message_gets_placeholder(self):
        assert length_clamp(RenderedMessage("", "  "), 100) == "(no text content)"

    def test_oversized_header_is_cut(self):
        result = length_clamp(RenderedMessage("H" * 50, "body"), 20)
        assert len(result) == 20
        assert result.endswith(CONTINUATION_MARKER)

    def test_ceiling_below_marker_gives_prefix(self):
        assert length_clamp(RenderedMessage("abc", "defghij"), 5) == "abcde"

    def test_zero_ceiling(self):
        assert length_clamp(RenderedMessage("abc", "def"), 0) == ""


class TestRenderMessage:
    def test_limits_per_direction(self):
        assert max_length_for(SyncDirection.TO_CHAT) == DISCORD_MAX_LENGTH
        assert max_length_for(SyncDirection.TO_FORUM) == GITHUB_MAX_LENGTH

    def test_to_chat_clamped_to_discord_limit(self):
        text = render_message(SyncDirection.TO_CHAT, "a", "https://x.io", "y" * 3000)
        assert len(text) == DISCORD_MAX_LENGTH
        assert text.endswith(CONTINUATION_MARKER)

    def test_to_forum_converts_images_in_body_only(self):
        text = render_message(
            SyncDirection.TO_FORUM,
            "wumpus",
            "https://discord.com/channels/1/2/3",
            "https://cdn.discordapp.com/a.png",
        )
        assert text == (
            "💬 **wumpus** on [Discord](https://discord.com/channels/1/2/3) wrote:\n\n"
            "![Image](https://cdn.discordapp.com/a.png)"
        )

    def test_explicit_max_length(self):
        text = render_message(
            SyncDirection.TO_FORUM, "a", "u", "z" * 500, max_length=100
        )
        assert len(text) == 100

    def test_rendered_output_is_attributed(self):
        text = render_message(SyncDirection.TO_CHAT, "octocat", "https://x.io", "hi")
        assert is_attributed(text)
