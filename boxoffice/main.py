import logging
from fastapi import FastAPI
from boxoffice.api.exceptions import register_error_handler
from boxoffice.api.v1.routes import events, purchases, tickets, health
from boxoffice.core.database import engine
from boxoffice.core.middleware.http_ctx import HttpContextMiddleware
from boxoffice.core.redis import create_redis

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


async def lifespan(app: FastAPI):
    r = await create_redis()
    app.state.redis = r
    try:
        yield
    finally:
        if r is not None:
            await r.aclose()
        await engine.dispose()


app = FastAPI(title="boxoffice", lifespan=lifespan)
app.add_middleware(HttpContextMiddleware, request_id_header="X-Request-ID")
register_error_handler(app)
app.include_router(health.router)
app.include_router(events.router)
app.include_router(purchases.router)
app.include_router(tickets.router)
