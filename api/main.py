from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import health, market_data, sentiment
from sentiment_index import __version__


def create_app() -> FastAPI:
    app = FastAPI(
        title="Market Sentiment Index API",
        description="Composite A-share market sentiment index, its history and the underlying market data.",
        version=__version__,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(sentiment.router)
    app.include_router(market_data.router)

    @app.get("/")
    def root():
        return {"status": "ok", "message": "Market Sentiment Index API is running"}

    return app


app = create_app()
