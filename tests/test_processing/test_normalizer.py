"""Tests for the HTML → plain text normalizer."""

from po_mails.processing.normalizer import html_to_text, normalize_text


class TestNormalizeText:
    def test_collapses_whitespace_runs(self) -> None:
        assert normalize_text("a \n\t  b   c") == "a b c"

    def test_replaces_non_breaking_spaces(self) -> None:
        assert normalize_text("Rate:\u00a0\u00a055") == "Rate: 55"

    def test_trims_ends(self) -> None:
        assert normalize_text("   padded  ") == "padded"

    def test_empty_and_none(self) -> None:
        assert normalize_text("") == ""
        assert normalize_text(None) == ""

    def test_idempotent(self) -> None:
        once = normalize_text("  Name of Candidate:\n Jane   Doe ")
        assert normalize_text(once) == once


class TestHtmlToText:
    def test_strips_tags_with_spaces_between_cells(self) -> None:
        html = "<table><tr><td>Rate:</td><td>$55</td></tr></table>"
        assert html_to_text(html) == "Rate: $55"

    def test_drops_script_and_style_contents(self) -> None:
        html = "<style>p{x:1}</style><p>Keep</p><script>drop()</script>"
        assert html_to_text(html) == "Keep"

    def test_decodes_nbsp_entity(self) -> None:
        assert html_to_text("<p>Thanks&nbsp;&nbsp;Team</p>") == "Thanks Team"

    def test_empty_and_none(self) -> None:
        assert html_to_text("") == ""
        assert html_to_text(None) == ""

    def test_idempotent_on_normalized_text(self, po_html_body: str) -> None:
        once = html_to_text(po_html_body)
        assert html_to_text(once) == once

    def test_escaped_markup_is_stable(self) -> None:
        once = html_to_text("Client X &lt;b&gt;Acme&lt;/b&gt; Rate")
        assert "<" not in once
        assert "Acme" in once
        assert html_to_text(once) == once

    def test_double_escaped_entity_is_stable(self) -> None:
        once = html_to_text("<p>Client &amp;lt;Acme&amp;gt; &amp;nbsp;Rate</p>")
        assert html_to_text(once) == once

    def test_plain_ampersands_are_kept(self) -> None:
        assert html_to_text("<p>AT&amp;T Thanks &amp; Regards</p>") == "AT&T Thanks & Regards"

    def test_full_template(self, po_html_body: str) -> None:
        text = html_to_text(po_html_body)
        assert "color" not in text
        assert "tracking" not in text
        assert "Name of Candidate: Jane Doe SST Yes Location USA" in text
        assert text.endswith("Thanks & Regards")
