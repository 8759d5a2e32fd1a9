import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request

from routes.auth_route import router as auth_router
from routes.image_route import router as image_router
from routes.stats_route import router as stats_router
from utils.aws_init import AwsResourceInitializer
from utils.session_auth import SessionVerifier

load_dotenv()  # Load environment variables from .env file if present

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the DynamoDB table and S3 client (from AWS_REGION, DYNAMO_TABLE_NAME, S3_BUCKET_NAME)
      - the session verifier (only when the Cognito settings are present)
    and attach them to `app.state`.
    """
    try:
        aws = AwsResourceInitializer()
    except RuntimeError:
        logging.error("AWS configuration is incomplete; refusing to start.")
        raise

    # Build clients eagerly so credential/region problems surface at startup.
    _ = aws.table, aws.s3_client
    app.state.aws = aws
    app.state.session_verifier = SessionVerifier.from_env()
    if app.state.session_verifier is None:
        logging.warning("COGNITO_USER_POOL_ID/COGNITO_CLIENT_ID not set; updates will not be attributed.")

    yield


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(title="Crop Label Review", lifespan=lifespan)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports whether AWS resources and the verifier are configured.
        """
        has_aws = getattr(request.app.state, "aws", None) is not None
        has_verifier = getattr(request.app.state, "session_verifier", None) is not None
        return {"ok": True, "aws_configured": has_aws, "session_verification": has_verifier}

    # Register application routers
    app.include_router(auth_router)
    app.include_router(image_router)
    app.include_router(stats_router)

    return app


app = create_app()
