"""FastAPI application for qrisgate."""
from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from .config import settings
from .errors import QRISError
from .logging_conf import configure_logging
from .middleware import RequestLoggingMiddleware
from .models import Payment, get_session, init_db
from .monitoring import metrics_payload, record_service_error
from .qris_encoder import inspect_payload
from .schemas import (
    CreatePaymentRequest,
    CreatePaymentResponse,
    MerchantCredentials,
    PaymentResponse,
    SettlementCheckRequest,
    SettlementCheckResponse,
    TLVElement,
    VerifyRequest,
    VerifyResponse,
)
from .services.errors import ServiceError, from_codec_error
from .services.payments import PaymentService
from .settlement import SettlementPoller
from .uploader import Uploader

app = FastAPI(title="qrisgate", version="0.1.0")
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CORSMiddleware, allow_origins=settings.allowed_origins, allow_methods=["*"], allow_headers=["*"])

logger = logging.getLogger("qrisgate.api")


def _warn_insecure_defaults() -> None:
    if settings.api_key == "dev-secret-key":
        logger.warning(
            "api key menggunakan nilai default",
            extra={"config_key": "api_key"},
        )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    _warn_insecure_defaults()
    await init_db()


async def require_api_key(x_api_key: str = Header(...)) -> None:
    if x_api_key != settings.api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


def get_settlement_poller() -> SettlementPoller:
    return SettlementPoller(settings.mutation_feed_url, timeout=settings.settlement_timeout_seconds)


def get_uploader() -> Uploader | None:
    """No uploader by default; deployments override this dependency."""

    return None


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    route = request.scope.get("route")
    route_path = route.path if route else request.url.path
    logger.warning(
        "service error",
        extra={"code": exc.code, "path": route_path, "method": request.method, "detail": exc.message},
    )
    record_service_error(exc.code, route_path)
    return JSONResponse(status_code=exc.status_code, content={"code": exc.code, "message": exc.message})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    route = request.scope.get("route")
    route_path = route.path if route else request.url.path
    logger.exception(
        "unhandled exception",
        extra={"path": route_path, "method": request.method},
    )
    return JSONResponse(status_code=500, content={"code": "ERR_INTERNAL", "message": "Internal server error"})


def _payment_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        transaction_id=payment.id,
        amount=payment.amount,
        fee=payment.fee,
        total_amount=payment.total_amount,
        payload=payment.payload,
        crc=payment.crc,
        status=payment.status,
        qr_image_url=payment.image_url,
        created_at=payment.created_at,
        expires_at=payment.expires_at,
    )


@app.get("/health", tags=["system"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", tags=["system"])
async def metrics() -> Response:
    payload, content_type = metrics_payload()
    return Response(content=payload, media_type=content_type)


@app.post(
    "/v1/payments",
    response_model=CreatePaymentResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["payments"],
    dependencies=[Depends(require_api_key)],
)
async def create_payment(
    payload: CreatePaymentRequest,
    session: AsyncSession = Depends(get_session),
    uploader: Uploader | None = Depends(get_uploader),
) -> CreatePaymentResponse:
    service = PaymentService(session, uploader=uploader)
    result = await service.create_payment(
        merchant_payload=payload.merchant_payload,
        amount=payload.amount,
        with_fee=payload.with_fee,
    )
    return CreatePaymentResponse(
        **_payment_response(result.payment).model_dump(),
        qr_png_base64=result.qr_png_base64,
    )


@app.get(
    "/v1/payments/{transaction_id}",
    response_model=PaymentResponse,
    tags=["payments"],
    dependencies=[Depends(require_api_key)],
)
async def get_payment(transaction_id: str, session: AsyncSession = Depends(get_session)) -> PaymentResponse:
    payment = await PaymentService(session).get_payment(transaction_id)
    return _payment_response(payment)


@app.post(
    "/v1/payments/{transaction_id}/check",
    response_model=PaymentResponse,
    tags=["payments"],
    dependencies=[Depends(require_api_key)],
)
async def check_payment(
    transaction_id: str,
    credentials: MerchantCredentials,
    session: AsyncSession = Depends(get_session),
    poller: SettlementPoller = Depends(get_settlement_poller),
) -> PaymentResponse:
    payment = await PaymentService(session).refresh_status(
        transaction_id,
        poller=poller,
        merchant_id=credentials.merchant_id,
        access_token=credentials.access_token,
    )
    return _payment_response(payment)


@app.post(
    "/v1/settlement/check",
    response_model=SettlementCheckResponse,
    tags=["settlement"],
    dependencies=[Depends(require_api_key)],
)
async def check_settlement(
    payload: SettlementCheckRequest,
    poller: SettlementPoller = Depends(get_settlement_poller),
) -> SettlementCheckResponse:
    result = await poller.check_settlement(payload.merchant_id, payload.access_token, payload.amount)
    return SettlementCheckResponse(status=result.status)


@app.post("/v1/qris/verify", response_model=VerifyResponse, tags=["qris"], dependencies=[Depends(require_api_key)])
async def verify_qris(payload: VerifyRequest) -> VerifyResponse:
    try:
        inspection = inspect_payload(payload.payload)
    except QRISError as exc:
        raise from_codec_error(exc) from exc
    return VerifyResponse(
        crc_valid=inspection.crc_valid,
        amount=inspection.amount,
        elements=[TLVElement(tag=item.tag, length=item.length, value=item.value) for item in inspection.items],
    )
