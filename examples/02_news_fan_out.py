"""
News Fan-Out Example

This example demonstrates:
1. Loading a workflow from its portable JSON document
2. Fan-out: one article per discovered news item
3. Stopping a run from the outside

No API keys needed; all collaborators are local.
"""

import asyncio
import json

from contentflow import GraphStore, Toolbox, WorkflowRunner
from contentflow.core.logging import Colors, LogLevel, configure_logging
from contentflow.core.tools.base import ArticlesResponse, PublishedArticle, TextGenerationResponse

WORKFLOW = {
    "nodes": [
        {"id": "trigger", "type": "trigger", "connected": ["news"]},
        {
            "id": "news",
            "type": "news-discovery",
            "config": {"keywords": ["heat pumps"], "timeRange": "week", "fanOut": True},
            "connected": ["writer"],
        },
        {"id": "writer", "type": "ai-content-processor", "config": {"wordCount": "short"}, "connected": ["publisher"]},
        {"id": "publisher", "type": "publisher", "config": {"status": "draft"}},
    ],
    "version": "1.0",
}


class LocalNews:
    async def discover(self, request):
        return ArticlesResponse(articles=[
            {
                "title": f"{request.query.title()} story {n}",
                "description": f"Coverage number {n} about {request.query}.",
                "url": f"https://news.example/{n}",
                "source_reference": {"url": f"https://news.example/{n}", "title": f"Story {n}"},
            }
            for n in range(1, 5)
        ])


class EchoWriter:
    """Writes a one-paragraph article from the first line of the prompt's source."""

    async def generate(self, request):
        await asyncio.sleep(0.2)
        source = request.prompt.split("Title: ", 1)[-1].split("\n", 1)[0]
        return TextGenerationResponse(text=f"# {source}\n\nA short write-up of {source.lower()}.")


class PrintingPublisher:
    async def publish(self, request):
        refs = ", ".join(ref["url"] for ref in request.source_references)
        print(f"{Colors.SUCCESS}Draft:{Colors.RESET} {request.title} ({refs})")
        return PublishedArticle(id=request.slug, title=request.title, slug=request.slug, status=request.status)


async def main():
    configure_logging(default_level=LogLevel.WARNING)
    store = GraphStore.from_json(json.dumps(WORKFLOW))
    tools = Toolbox(news=LocalNews(), text_generator=EchoWriter(), publisher=PrintingPublisher())

    print(f"{Colors.BOLD}Full run{Colors.RESET}")
    result = await WorkflowRunner.from_store(store, tools=tools).run()
    print(f"{result.summary} ({len(result.outputs)} drafts)\n")

    print(f"{Colors.BOLD}Stopped run{Colors.RESET}")
    runner = WorkflowRunner.from_store(store, tools=tools)
    task = asyncio.create_task(runner.run())
    await asyncio.sleep(0.1)
    runner.stop()
    result = await task
    print(f"{result.summary} ({len(result.outputs)} drafts)")


if __name__ == "__main__":
    asyncio.run(main())
