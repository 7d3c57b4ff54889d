# Test suite for terminal input handling

from vibey.main import split_context_refs


class TestSplitContextRefs:
    """@path attachments"""

    def test_refs_become_context_items(self):
        message, items = split_context_refs("explain @src/app.py and @README.md please")
        assert message == "explain  and  please"
        assert [(i.name, i.path) for i in items] == [("app.py", "src/app.py"), ("README.md", "README.md")]

    def test_email_addresses_are_not_refs(self):
        message, items = split_context_refs("mail bob@example.com")
        assert message == "mail bob@example.com"
        assert items == []

    def test_only_refs_keeps_original_text(self):
        message, items = split_context_refs("@notes.md")
        assert message == "@notes.md"
        assert len(items) == 1
