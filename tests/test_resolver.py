"""
Tests for the representation resolver state machine.
"""

import httpx
import pytest

from box_loader.exceptions import BoxAPIError, InvalidResponseError
from box_loader.representations.resolver import (
    TRANSITIONS,
    RepresentationResolver,
    ResolverAction,
    select_kind,
)
from box_loader.retry import BackoffConfig
from box_loader.types import (
    Failure,
    FailureKind,
    FileDescriptor,
    RepresentationDescriptor,
    RepresentationKind,
    RepresentationState,
)

from conftest import info_url, rep_entry


class TestTransitionTable:
    """Tests for the state -> action table."""

    def test_every_state_has_an_action(self):
        assert set(TRANSITIONS) == set(RepresentationState)

    def test_retryable_states_poll(self):
        assert TRANSITIONS[RepresentationState.PENDING] is ResolverAction.POLL
        assert TRANSITIONS[RepresentationState.PROCESSING] is ResolverAction.POLL

    def test_terminal_states(self):
        assert TRANSITIONS[RepresentationState.READY] is ResolverAction.ACCEPT
        assert TRANSITIONS[RepresentationState.NONE] is ResolverAction.FAIL
        assert TRANSITIONS[RepresentationState.ERROR] is ResolverAction.FAIL


class TestSelectKind:
    """Tests for representation kind selection."""

    @pytest.mark.parametrize("ext", ["docx", "pptx", "xls", "xlsx", "xlsm", "gdoc", "gslide", "gslides", "gsheet", "pdf"])
    def test_markdown_extensions(self, ext):
        file = FileDescriptor(id="1", name=f"a.{ext}", extension=ext)
        assert select_kind(file) is RepresentationKind.MARKDOWN

    def test_other_extensions_use_extracted_text(self):
        file = FileDescriptor(id="1", name="notes.txt", extension="txt")
        assert select_kind(file) is RepresentationKind.EXTRACTED_TEXT

    def test_falls_back_to_name_when_extension_missing(self):
        file = FileDescriptor(id="1", name="Report.PDF")
        assert select_kind(file) is RepresentationKind.MARKDOWN


class TestResolve:
    """Tests for RepresentationResolver.resolve."""

    @pytest.mark.asyncio
    async def test_ready_on_first_listing(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt")
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert isinstance(result, RepresentationDescriptor)
        assert result.state is RepresentationState.READY
        assert result.info_url == info_url("1", RepresentationKind.EXTRACTED_TEXT)
        assert len(fake_client.listing_calls) == 1
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_requests_only_the_chosen_kind(self, fake_client, sleeper):
        file = fake_client.add_file("1", "deck.pptx")
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        await resolver.resolve(file)

        assert fake_client.listing_calls == [("1", RepresentationKind.MARKDOWN)]

    @pytest.mark.asyncio
    async def test_pending_twice_then_ready(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt", states=["pending", "pending", "success"])
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert isinstance(result, RepresentationDescriptor)
        assert result.state is RepresentationState.READY
        # 1 initial listing + 2 polls
        assert len(fake_client.listing_calls) == 3
        assert sleeper.delays == [1.5, 3.0]

    @pytest.mark.asyncio
    async def test_pending_exhausts_retries(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt", states=["pending"] * 4)
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert isinstance(result, Failure)
        assert result.kind is FailureKind.STILL_PROCESSING
        assert len(fake_client.listing_calls) == 4
        assert sleeper.delays == [1.5, 3.0, 4.5]

    @pytest.mark.asyncio
    async def test_processing_is_retryable(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt", states=["processing", "viewable"])
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert isinstance(result, RepresentationDescriptor)
        assert sleeper.delays == [1.5]

    @pytest.mark.asyncio
    async def test_custom_retry_budget(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt", states=["pending"])
        resolver = RepresentationResolver(
            fake_client, retry=BackoffConfig(max_retries=1, base_delay=0.25), sleep=sleeper
        )

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.STILL_PROCESSING
        assert sleeper.delays == [0.25]

    @pytest.mark.asyncio
    async def test_none_state_is_terminal(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt", states=["none", "success"])
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.NO_REPRESENTATION
        assert len(fake_client.listing_calls) == 1
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_error_state_carries_server_message(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt")
        url = info_url("1", RepresentationKind.EXTRACTED_TEXT)
        fake_client.listings["1"] = [
            [rep_entry(RepresentationKind.EXTRACTED_TEXT, "error", url, message="file is encrypted")]
        ]
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.EXTRACTION_FAILED
        assert result.detail == "file is encrypted"
        assert "encrypted" in result.render("notes.txt")

    @pytest.mark.asyncio
    async def test_unrecognised_state(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt", states=["frozen"])
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.UNKNOWN_STATE

    @pytest.mark.asyncio
    async def test_missing_state_with_url_counts_as_ready(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt", states=[None])
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert isinstance(result, RepresentationDescriptor)
        assert result.state is RepresentationState.READY

    @pytest.mark.asyncio
    async def test_missing_kind_in_listing(self, fake_client, sleeper):
        file = FileDescriptor(id="9", name="notes.txt", extension="txt")
        fake_client.listings["9"] = [
            [rep_entry(RepresentationKind.MARKDOWN, "success", "https://x")]
        ]
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.NO_REPRESENTATION
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_empty_listing(self, fake_client, sleeper):
        file = FileDescriptor(id="9", name="notes.txt", extension="txt")
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.NO_REPRESENTATION

    @pytest.mark.asyncio
    async def test_forbidden_listing_is_authentication_failure(self, fake_client, sleeper):
        file = FileDescriptor(id="9", name="notes.txt", extension="txt")
        fake_client.listings["9"] = [BoxAPIError("Access denied", 403)]
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.AUTHENTICATION
        assert result.status == 403

    @pytest.mark.asyncio
    async def test_network_error_during_poll(self, fake_client, sleeper):
        file = fake_client.add_file("1", "notes.txt")
        url = info_url("1", RepresentationKind.EXTRACTED_TEXT)
        fake_client.listings["1"] = [
            [rep_entry(RepresentationKind.EXTRACTED_TEXT, "pending", url)],
            httpx.ConnectError("connection refused"),
        ]
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.NETWORK_ERROR
        assert sleeper.delays == [1.5]

    @pytest.mark.asyncio
    async def test_unparsable_listing_is_invalid_format(self, fake_client, sleeper):
        file = FileDescriptor(id="9", name="notes.txt", extension="txt")
        fake_client.listings["9"] = [InvalidResponseError("Response from files/9 is not JSON", status=200)]
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.INVALID_FORMAT
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_malformed_status_is_unknown_state(self, fake_client, sleeper):
        file = FileDescriptor(id="9", name="notes.txt", extension="txt")
        fake_client.listings["9"] = [
            [{"representation": "extracted_text", "status": "broken", "info": "nope"}]
        ]
        resolver = RepresentationResolver(fake_client, sleep=sleeper)

        result = await resolver.resolve(file)

        assert result.kind is FailureKind.UNKNOWN_STATE
