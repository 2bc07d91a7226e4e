"""Tests for the comment section binding."""

import pytest

from devspace.client.section import CommentSection
from devspace.client.state import CommentDraft, SortOrder
from devspace.client.store import CommentStoreClient
from devspace.config import Settings

from .fakes import BASE_URL, NOW, FakeCommentsApi, make_comment


@pytest.fixture
def section(store: CommentStoreClient) -> CommentSection:
    return CommentSection(store, clock=lambda: NOW)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_open_loads_and_binds(
        self, section: CommentSection, api: FakeCommentsApi
    ):
        api.comments = [make_comment("Ada"), make_comment("Grace", minutes_ago=3)]

        result = await section.open("project-1")

        assert result.ok is True
        assert section.is_open
        assert "3m ago" in section.view.comments_html
        assert f"like:{api.comments[0]['_id']}" in section.handlers
        assert "submit-comment" in section.handlers

    @pytest.mark.asyncio
    async def test_open_resets_previous_view(
        self, section: CommentSection, api: FakeCommentsApi
    ):
        api.comments = [make_comment("Ada")]
        await section.open("project-1")
        section.state.page = 3
        section.state.open_reply_forms.add("x")

        await section.open("project-2")

        assert section.state.item_id == "project-2"
        assert section.state.page == 1
        assert section.state.open_reply_forms == set()

    @pytest.mark.asyncio
    async def test_open_prefills_signed_in_visitor(self, section: CommentSection):
        await section.open(
            "project-1", viewer_name="Ada", viewer_email="ada@example.com"
        )

        assert section.state.comment_draft.name == "Ada"
        assert 'value="ada@example.com"' in section.html

    @pytest.mark.asyncio
    async def test_close_discards_state(self, section: CommentSection):
        await section.open("project-1")

        section.close()

        assert not section.is_open
        assert section.handlers == {}
        assert section.state.comments == []

    def test_from_settings(self, api: FakeCommentsApi):
        settings = Settings(
            comments_api_base_url=BASE_URL,
            comments_per_page=3,
            comments_fetch_limit=20,
        )

        section = CommentSection.from_settings(settings, transport=api.transport)

        assert section.state.per_page == 3
        assert section.state.fetch_limit == 20
        assert section.store.on_change == section.refresh


class TestDispatch:
    @pytest.mark.asyncio
    async def test_like_through_binding(
        self, section: CommentSection, api: FakeCommentsApi
    ):
        api.comments = [make_comment("Ada", likes=1)]
        await section.open("project-1")
        comment_id = api.comments[0]["_id"]

        await section.dispatch(f"like:{comment_id}")

        assert section.state.comments[0].likes == 2
        assert 'data-liked="true"' in section.view.comments_html

    @pytest.mark.asyncio
    async def test_submit_comment_through_binding(
        self, section: CommentSection, api: FakeCommentsApi
    ):
        await section.open("project-1")
        section.state.comment_draft.name = "Ada"
        section.state.comment_draft.text = "First!"

        result = await section.dispatch("submit-comment")

        assert result.ok is True
        assert [c.text for c in section.state.comments] == ["First!"]
        assert section.notifier.last.message == "Comment posted successfully!"

    @pytest.mark.asyncio
    async def test_unknown_key_ignored(self, section: CommentSection):
        await section.open("project-1")
        assert await section.dispatch("like:does-not-exist") is None

    @pytest.mark.asyncio
    async def test_page_binding(self, section: CommentSection, api: FakeCommentsApi):
        api.comments = [make_comment(str(i), minutes_ago=i) for i in range(7)]
        await section.open("project-1")

        assert await section.dispatch("page:2") is True

        assert section.state.page == 2
        assert "Page 2 of 2" in section.view.pagination_html
        assert "page:3" not in section.handlers


class TestClientSideInteractions:
    @pytest.mark.asyncio
    async def test_change_page_is_local_and_bounded(
        self, section: CommentSection, api: FakeCommentsApi
    ):
        api.comments = [make_comment(str(i), minutes_ago=i) for i in range(12)]
        await section.open("project-1")
        requests = len(api.requests)

        assert section.change_page(3) is True
        assert section.change_page(4) is False
        assert section.change_page(0) is False
        assert section.state.page == 3
        assert len(api.requests) == requests

    @pytest.mark.asyncio
    async def test_change_sort_resets_page_and_reloads(
        self, section: CommentSection, api: FakeCommentsApi
    ):
        api.comments = [make_comment(str(i), minutes_ago=i) for i in range(7)]
        await section.open("project-1")
        section.change_page(2)

        await section.dispatch("sort:oldest")

        assert section.state.sort is SortOrder.OLDEST
        assert section.state.page == 1
        assert api.requests[-1].url.params["sort"] == "createdAt"
        assert section.state.comments[0].name == "6"

    @pytest.mark.asyncio
    async def test_reply_form_toggle_and_cancel(
        self, section: CommentSection, api: FakeCommentsApi
    ):
        api.comments = [make_comment("Ada")]
        await section.open("project-1")
        comment_id = api.comments[0]["_id"]

        assert await section.dispatch(f"reply:{comment_id}") is True
        assert f'id="replyForm_{comment_id}" style="display: block;"' in (
            section.view.comments_html
        )
        section.state.reply_draft(comment_id).text = "half-written"

        await section.dispatch(f"cancel-reply:{comment_id}")

        assert comment_id not in section.state.open_reply_forms
        assert section.state.reply_draft(comment_id).text == ""

        assert section.toggle_reply_form(comment_id) is True
        assert section.toggle_reply_form(comment_id) is False

    def test_insert_emoji_at_cursor(self):
        draft = CommentDraft(text="Hello world", cursor=5)

        CommentSection.insert_emoji(draft, "🚀")

        assert draft.text == "Hello🚀 world"
        assert draft.cursor == 6

    def test_insert_emoji_without_cursor_appends(self):
        draft = CommentDraft(text="Nice")

        CommentSection.insert_emoji(draft, "🔥")
        CommentSection.insert_emoji(draft, "✨")

        assert draft.text == "Nice🔥✨"

    def test_insert_emoji_stops_at_text_limit(self):
        draft = CommentDraft(text="z" * 499, cursor=10)

        CommentSection.insert_emoji(draft, "🚀")
        CommentSection.insert_emoji(draft, "🔥")

        assert draft.text == "z" * 10 + "🚀" + "z" * 489
        assert draft.cursor == 11
        assert CommentSection.char_count(draft) == "500/500"

    @pytest.mark.asyncio
    async def test_emoji_binding_targets_comment_form(self, section: CommentSection):
        await section.open("project-1")

        await section.dispatch("emoji:🎉")

        assert section.state.comment_draft.text == "🎉"

    def test_char_count(self):
        assert CommentSection.char_count(CommentDraft(text="abc")) == "3/500"
        assert CommentSection.char_count(CommentDraft()) == "0/500"
