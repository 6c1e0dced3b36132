from todo_api.sanitizer import sanitize, strip_markup


def test_none_passes_through():
    assert sanitize(None) is None


def test_plain_text_is_unchanged():
    assert sanitize("Milk, eggs, bread") == "Milk, eggs, bread"


def test_script_element_and_body_are_removed():
    cleaned = sanitize("<script>alert(1)</script> hi")
    assert "<script" not in cleaned
    assert "alert" not in cleaned
    assert cleaned.strip() == "hi"


def test_formatting_tags_are_unwrapped():
    assert sanitize("<b>bold</b> text") == "bold text"


def test_event_handler_attributes_do_not_survive():
    cleaned = sanitize('<img src="x" onerror="alert(1)">ok')
    assert "onerror" not in cleaned
    assert "<img" not in cleaned
    assert cleaned == "ok"


def test_markup_only_input_becomes_empty():
    assert sanitize("<style>body{}</style>") == ""


class TestStripMarkup:
    def test_none_passes_through(self):
        assert strip_markup(None) is None

    def test_plain_text_keeps_special_characters(self):
        assert strip_markup("R&D budget") == "R&D budget"
        assert strip_markup("1 < 2 > 0") == "1 < 2 > 0"

    def test_tags_and_script_bodies_are_removed(self):
        assert strip_markup("<script>x</script> <b>hi</b>") == " hi"

    def test_escaped_markup_does_not_become_a_tag(self):
        cleaned = strip_markup("&lt;script&gt;alert(1)&lt;/script&gt;ok")
        assert "<script" not in cleaned
        assert "alert" not in cleaned
        assert cleaned == "ok"

    def test_description_sanitizer_keeps_html_escaping(self):
        assert sanitize("R&D") == "R&amp;D"
