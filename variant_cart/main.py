# variant_cart/main.py
from fastapi import FastAPI
import uvicorn

from variant_cart.data.database import Base, engine
from variant_cart.api.routers import carts, health
from variant_cart.utils.logging import get_logger

# import wszystkich modeli przed create_all
import variant_cart.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db(bind=engine) -> None:
    logger.info(f"Creating tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=bind)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise


def create_app(create_tables: bool = True) -> FastAPI:
    if create_tables:
        init_db()

    app = FastAPI(
        title="Variant Cart Service",
        version="1.0.0",
    )

    app.include_router(health.router)
    app.include_router(carts.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
