"""Tests for single node execution.

This module tests:
- running/completed trace entries around a handler
- Pass-through for kinds without a handler
- Configuration and missing-input failures as error entries
- Payload isolation between the caller and the handler
- Stop handling
"""

import pytest

from contentflow.core.errors import CollaboratorError, MissingInputError, NodeConfigurationError, RunStopped
from contentflow.core.graph.executor import NodeExecutor
from contentflow.core.graph.registry import NodeKind
from contentflow.core.graph.state import CancellationToken, ExecutionTrace, NodeStatus
from contentflow.core.tools.base import Toolbox


@pytest.fixture
def trace() -> ExecutionTrace:
    return ExecutionTrace()


@pytest.fixture
def executor(trace: ExecutionTrace, toolbox: Toolbox) -> NodeExecutor:
    """Fixture providing an executor wired to the fake collaborators."""
    return NodeExecutor(trace, tools=toolbox)


class TestExecute:
    """Test suite for NodeExecutor.execute."""

    @pytest.mark.asyncio
    async def test_trigger(self, executor: NodeExecutor, trace: ExecutionTrace, make_node):
        """A trigger writes running then completed and marks the payload."""
        output = await executor.execute(make_node("t", NodeKind.TRIGGER))

        assert output["triggered"] is True
        assert "timestamp" in output
        assert [(e.status, e.message) for e in trace.entries] == [
            (NodeStatus.RUNNING, "Starting trigger execution..."),
            (NodeStatus.COMPLETED, "Workflow triggered successfully"),
        ]

    @pytest.mark.asyncio
    async def test_pass_through_kind(self, executor: NodeExecutor, trace: ExecutionTrace, make_node):
        """Kinds without a handler return their input unchanged."""
        payload = {"title": "Kept", "nested": {"a": 1}}
        output = await executor.execute(make_node("f", NodeKind.ENGAGEMENT_FORECASTER), payload)

        assert output == payload
        assert output is not payload
        assert trace.entries[-1].status == NodeStatus.COMPLETED
        assert trace.entries[-1].message == "engagement-forecaster executed (no specific behavior)"

    @pytest.mark.asyncio
    async def test_unknown_kind_passes_through(self, executor: NodeExecutor, trace: ExecutionTrace, make_node):
        """Kinds the registry does not know behave like pass-through kinds."""
        output = await executor.execute(make_node("m", "mystery-kind"), {"x": 1})

        assert output == {"x": 1}
        assert trace.entries[-1].message == "mystery-kind executed (no specific behavior)"

    @pytest.mark.asyncio
    async def test_legacy_kind_uses_handler(self, executor: NodeExecutor, fakes, make_node):
        """Legacy kind names run the canonical handler."""
        output = await executor.execute(make_node("s", "scraper", urls=["https://good.example"]))

        assert output["scrapedContent"][0]["url"] == "https://good.example"
        assert len(fakes.scraper.requests) == 1

    @pytest.mark.asyncio
    async def test_input_is_not_mutated(self, executor: NodeExecutor, make_node):
        """Handlers work on a private copy of the payload."""
        payload = {"articles": [{"title": "Python release", "description": "News"}]}
        await executor.execute(make_node("f", NodeKind.CONTENT_FILTER, keywords="rust"), payload)

        assert payload == {"articles": [{"title": "Python release", "description": "News"}]}


class TestExecuteErrors:
    """Test suite for failures during execution."""

    @pytest.mark.asyncio
    async def test_config_error(self, executor: NodeExecutor, trace: ExecutionTrace, make_node):
        """An invalid config raises and leaves one error entry."""
        with pytest.raises(NodeConfigurationError) as exc_info:
            await executor.execute(make_node("s", NodeKind.CONTENT_SCRAPER, urls=[]))

        assert exc_info.value.field == "urls"
        assert "No URLs configured for web scraper" in str(exc_info.value)
        errors = trace.errors()
        assert len(errors) == 1
        assert errors[0].message.startswith("Error: ")
        assert "No URLs configured for web scraper" in errors[0].message

    @pytest.mark.asyncio
    async def test_missing_input(self, executor: NodeExecutor, trace: ExecutionTrace, make_node):
        """Missing payload keys raise MissingInputError naming the keys checked."""
        with pytest.raises(MissingInputError) as exc_info:
            await executor.execute(make_node("p", NodeKind.PUBLISHER), {"title": "No body"})

        assert exc_info.value.checked == ["processedContent", "synthesizedContent"]
        assert "processedContent" in trace.errors()[0].message

    @pytest.mark.asyncio
    async def test_missing_collaborator(self, trace: ExecutionTrace, make_node):
        """A handler whose collaborator is not configured fails with a clear message."""
        executor = NodeExecutor(trace, tools=Toolbox())
        with pytest.raises(CollaboratorError, match="No scraper collaborator configured"):
            await executor.execute(make_node("s", NodeKind.CONTENT_SCRAPER, urls=["https://a.example"]))

    @pytest.mark.asyncio
    async def test_collaborator_failure_wrapped(self, executor: NodeExecutor, fakes, make_node):
        """Exceptions from collaborators surface as CollaboratorError."""
        fakes.notifier.delivered = False
        with pytest.raises(CollaboratorError, match="was not delivered"):
            await executor.execute(make_node("e", NodeKind.EMAIL_NOTIFIER, recipient="ops@example.com"), {})


class TestExecuteStop:
    """Test suite for stop handling in the executor."""

    @pytest.mark.asyncio
    async def test_cancelled_before_start(self, executor: NodeExecutor, trace: ExecutionTrace, make_node):
        """A cancelled token prevents the node from starting."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(RunStopped):
            await executor.execute(make_node("t", NodeKind.TRIGGER), {}, token)
        assert len(trace) == 0

    @pytest.mark.asyncio
    async def test_result_discarded_after_stop(self, trace: ExecutionTrace, make_node):
        """A collaborator result that lands after stop is discarded and not logged."""
        token = CancellationToken()

        class StoppingNotifier:
            async def send(self, request):
                token.cancel()
                return {"delivered": True}

        executor = NodeExecutor(trace, tools=Toolbox(notifier=StoppingNotifier()))
        with pytest.raises(RunStopped):
            await executor.execute(make_node("e", NodeKind.EMAIL_NOTIFIER, recipient="ops@example.com"), {}, token)

        assert [e.status for e in trace.entries] == [NodeStatus.RUNNING]
