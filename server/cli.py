#!/usr/bin/env python3

import typer
import uvicorn
from typing import Optional
from rich.console import Console
from rich.table import Table

from config import get_settings
from observability import setup_logging_from_settings
from .chatbot import BusinessChatbot

console = Console()
app = typer.Typer(help="SiteChat CLI - chat with any business website")


def _chatbot() -> BusinessChatbot:
    settings = get_settings()
    setup_logging_from_settings(settings)
    return BusinessChatbot(settings)


@app.command()
def crawl(
    url: str = typer.Argument(..., help="Website to crawl"),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", min=1, help="Maximum pages to fetch")
):
    """Crawl a website and store it for questions"""
    bot = _chatbot()
    try:
        with console.status(f"[bold blue]Crawling {url}..."):
            data = bot.load_website(url, max_pages)
    finally:
        bot.close()

    summary = data["summary"]
    console.print(f"✅ Scraped {data['total_pages']} pages from {data['website_url']}", style="bold green")

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Pages", justify="right")
    table.add_column("FAQs", justify="right")
    table.add_column("Products", justify="right")
    table.add_column("Contact info")
    table.add_row(
        str(summary["total_pages"]),
        str(summary["total_faqs"]),
        str(summary["total_products"]),
        "yes" if summary["has_contact_info"] else "no"
    )
    console.print(table)


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question about the crawled website"),
    k: Optional[int] = typer.Option(None, "--k", min=1, help="Number of chunks to retrieve")
):
    """Answer a question from the latest stored crawl"""
    bot = _chatbot()
    try:
        if bot.load_session() is None:
            console.print("❌ No stored crawl found. Run 'sitechat crawl URL' first.", style="bold red")
            raise typer.Exit(1)

        with console.status(f"[bold blue]Thinking about: {question}"):
            answer = bot.answer_question(question, k)
    finally:
        bot.close()

    console.print(f"\n👤 [bold]{question}[/bold]")
    console.print(f"🤖 {answer}")


@app.command()
def suggest():
    """List suggested questions for the latest stored crawl"""
    bot = _chatbot()
    try:
        bot.load_session()
        for suggestion in bot.suggest_questions():
            console.print(f"• {suggestion}")
    finally:
        bot.close()


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port")
):
    """Run the HTTP API"""
    settings = get_settings()
    uvicorn.run(
        "server.rag_api:app",
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    app()
