"""
Article Pipeline Example

This example demonstrates:
1. Building a workflow with the GraphStore
2. Wiring collaborators into a Toolbox
3. Running the workflow and following the trace live

The workflow:
- Scrapes two pages (one of them fails; the run carries on)
- Writes an article from the scraped text with an OpenAI model
- Translates it to Spanish
- Publishes it and emails the editor

Requires OPENAI_API_KEY for the text generator.
"""

import asyncio

from contentflow import EngineConfig, GraphStore, NodeKind, Toolbox, WorkflowRunner
from contentflow.core.graph.state import ExecutionLogEntry, NodeStatus
from contentflow.core.logging import Colors, LogComponent, LogLevel, configure_logging, get_logger
from contentflow.core.tools import ArticleStructureValidator, LLMTranslator, MirascopeTextGenerator
from contentflow.core.tools.base import EmailResponse, PublishedArticle, ScrapeResponse

PAGES = {
    "https://example.com/solar": (
        "Utility-scale solar capacity grew faster than any other source last year. "
        "Falling panel prices and cheaper storage pushed several grids past 30% solar at noon."
    ),
}


class StaticScraper:
    """Serves canned pages; anything else fails like an unreachable host."""

    async def scrape(self, request):
        if request.url not in PAGES:
            raise ConnectionError(f"could not reach {request.url}")
        return ScrapeResponse(content=PAGES[request.url], source_reference={"url": request.url, "title": "Solar report"})


class ConsolePublisher:
    async def publish(self, request):
        print(f"\n{Colors.SUCCESS}Publishing:{Colors.RESET} {request.title} [{request.slug}]")
        return PublishedArticle(id="local-1", title=request.title, slug=request.slug, status=request.status)


class ConsoleNotifier:
    async def send(self, request):
        print(f"{Colors.INFO}Email to {request.recipient}:{Colors.RESET} {request.subject}")
        return EmailResponse(delivered=True)


def print_entry(entry: ExecutionLogEntry) -> None:
    color = {NodeStatus.RUNNING: Colors.DIM, NodeStatus.COMPLETED: Colors.SUCCESS}.get(entry.status, Colors.ERROR)
    print(f"{color}[{entry.status.value:>9}]{Colors.RESET} {entry.node_label}: {entry.message}")


def build_workflow() -> GraphStore:
    store = GraphStore()
    trigger = store.add_node(NodeKind.TRIGGER)
    scraper = store.add_node(NodeKind.CONTENT_SCRAPER)
    writer = store.add_node(NodeKind.AI_CONTENT_PROCESSOR)
    translator = store.add_node(NodeKind.TRANSLATOR)
    publisher = store.add_node(NodeKind.PUBLISHER)
    email = store.add_node(NodeKind.EMAIL_NOTIFIER)

    store.update_node_config(scraper.id, {"urls": ["https://example.com/solar", "https://example.com/missing"]})
    store.update_node_config(writer.id, {"writingStyle": "Conversational", "wordCount": "short", "aiModel": "gpt-4o-mini"})
    store.update_node_config(email.id, {"recipient": "editor@example.com"})

    chain = [trigger, scraper, writer, translator, publisher, email]
    for source, target in zip(chain, chain[1:]):
        store.connect(source.id, target.id)
    return store


async def main():
    """Run the article pipeline."""
    configure_logging(default_level=LogLevel.INFO)
    logger = get_logger(LogComponent.GRAPH)

    text_generator = MirascopeTextGenerator()
    tools = Toolbox(
        scraper=StaticScraper(),
        text_generator=text_generator,
        translator=LLMTranslator(text_generator, model="gpt-4o-mini"),
        structure_validator=ArticleStructureValidator(),
        publisher=ConsolePublisher(),
        notifier=ConsoleNotifier(),
    )

    store = build_workflow()
    runner = WorkflowRunner.from_store(store, tools=tools, config=EngineConfig(default_ai_model="gpt-4o-mini"))
    runner.trace.subscribe(print_entry)

    result = await runner.run()
    logger.info(result.summary)
    if result.outputs:
        print(f"\n{Colors.BOLD}Published at:{Colors.RESET} {result.outputs[0].get('url')}")


if __name__ == "__main__":
    asyncio.run(main())
