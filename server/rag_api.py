from fastapi import FastAPI, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
import datetime, logging, sqlite3

from config import get_settings
from observability import setup_logging_from_settings, setup_prometheus_metrics
from .chatbot import BusinessChatbot, CrawlInProgressError

app = FastAPI(title="SiteChat API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)
setup_prometheus_metrics(app)

# Global chatbot instance
chatbot: Optional[BusinessChatbot] = None


@app.on_event("startup")
def startup_event():
    """Configure logging and restore the latest stored session."""
    global chatbot

    settings = get_settings()
    setup_logging_from_settings(settings)

    try:
        chatbot = BusinessChatbot(settings)
        if chatbot.load_session():
            logging.info(f"Restored session {chatbot.session_id} from {settings.db_path}")
    except sqlite3.Error as e:
        logging.error(f"Failed to initialize chatbot: {e}")
        raise


@app.on_event("shutdown")
def shutdown_event():
    """Clean up resources on shutdown."""
    if chatbot:
        chatbot.close()
        logging.info("Chatbot resources released")


def current_chatbot() -> Optional[BusinessChatbot]:
    return chatbot


def get_chatbot(bot: Optional[BusinessChatbot] = Depends(current_chatbot)) -> BusinessChatbot:
    if bot is None:
        raise HTTPException(status_code=500, detail="Chatbot not initialized")
    return bot


def require_loaded(bot: BusinessChatbot):
    if not bot.is_loaded:
        raise HTTPException(status_code=400, detail="No website data loaded. Please scrape a website first")


def get_loaded_chatbot(bot: BusinessChatbot = Depends(get_chatbot)) -> BusinessChatbot:
    require_loaded(bot)
    return bot


class ScrapeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    website_url: str = Field(alias="websiteUrl", min_length=1)
    max_pages: int = Field(default=10, alias="maxPages", ge=1, le=500)


class ChatRequest(BaseModel):
    question: str = Field(min_length=1)
    max_results: Optional[int] = Field(default=None, ge=1, le=50)


@app.get("/")
def root():
    return {
        "message": "Business Website Chatbot API",
        "endpoints": {
            "POST /scrape": "Scrape a website",
            "POST /chat": "Ask a question",
            "GET /summary": "Get website summary",
            "GET /suggestions": "Get suggested questions",
            "GET /health": "Health check",
            "GET /metrics": "Prometheus metrics"
        }
    }


@app.post("/scrape")
def scrape(req: ScrapeRequest, bot: BusinessChatbot = Depends(get_chatbot)):
    """Crawl a website and make it available for questions."""
    logging.info(f"Scraping website: {req.website_url}")
    try:
        website_data = bot.load_website(req.website_url, req.max_pages)
    except CrawlInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except sqlite3.Error as e:
        logging.error(f"Scraping error: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to store crawl: {str(e)}")

    return {
        "success": True,
        "message": f"Successfully scraped {website_data['total_pages']} pages",
        "data": website_data
    }


@app.post("/chat")
def chat(req: ChatRequest, bot: BusinessChatbot = Depends(get_chatbot)):
    """Answer a question about the loaded website."""
    # Body validation (422) precedes the loaded check (400)
    require_loaded(bot)
    logging.info(f"Question: {req.question}")
    response = bot.answer_question(req.question, req.max_results)
    return {"success": True, "question": req.question, "response": response}


@app.get("/summary")
def summary(bot: BusinessChatbot = Depends(get_loaded_chatbot)):
    try:
        data = bot.get_website_summary()
    except sqlite3.Error as e:
        logging.error(f"Summary error: {e}")
        raise HTTPException(status_code=500, detail="Failed to read website summary")
    return {"success": True, "data": data}


@app.get("/suggestions")
def suggestions(bot: BusinessChatbot = Depends(get_loaded_chatbot)):
    return {"success": True, "data": bot.suggest_questions()}


@app.get("/health")
def health(bot: Optional[BusinessChatbot] = Depends(current_chatbot)):
    return {
        "status": "OK",
        "timestamp": datetime.datetime.utcnow().isoformat() + "Z",
        "chatbot_loaded": bot is not None and bot.is_loaded
    }
