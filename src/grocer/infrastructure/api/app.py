"""FastAPI REST API for the grocery store.

The caller's identity arrives in the ``X-User-Id`` / ``X-User-Role``
headers (set by whatever authenticates requests in front of this service)
and is turned into an explicit ``RequestContext`` for every call.
"""

import logging
from decimal import Decimal
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from grocer.application.add_product import AddProductHandler
from grocer.application.context import RequestContext, Role
from grocer.application.delete_product import DeleteProductHandler
from grocer.application.dto import AddressSpec, OrderItemSpec, PlaceOrderCommand
from grocer.application.list_orders import ListAllOrdersHandler, ListOrdersHandler
from grocer.application.list_products import ListCategoriesHandler, ListProductsHandler
from grocer.application.order_stats import OrderStatsHandler
from grocer.application.place_order import PlaceOrderHandler
from grocer.application.show_order import ShowOrderHandler
from grocer.application.show_product import ShowProductHandler
from grocer.application.update_order_status import UpdateOrderStatusHandler
from grocer.application.update_product import ProductChanges, UpdateProductHandler
from grocer.application.validation import validate_place_order
from grocer.domain.exceptions import (
    AccessDeniedError,
    DomainException,
    EntityNotFoundError,
    FieldError,
    InsufficientStockError,
    ProductNotFoundError,
    ProductUnavailableError,
    StorageError,
    ValidationError,
)
from grocer.infrastructure.api.schemas import (
    CategorySchema,
    FieldErrorSchema,
    OrderListResponse,
    OrderSchema,
    OrderStatsResponse,
    PlaceOrderRequest,
    ProductCreateRequest,
    ProductListResponse,
    ProductSchema,
    ProductUpdateRequest,
    StatusUpdateRequest,
    order_schema,
    pagination_schema,
    product_schema,
    stats_schema,
)
from grocer.infrastructure.bootstrap import Container, build_container

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES: dict[type, int] = {
    ValidationError: 400,
    ProductUnavailableError: 400,
    InsufficientStockError: 400,
    AccessDeniedError: 403,
    EntityNotFoundError: 404,
}


# --- Error responses ----------------------------------------------------------


def _status_for(exc: DomainException) -> int:
    for exc_type in type(exc).__mro__:
        if exc_type in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[exc_type]
    return 400


def _validation_response(errors: list[FieldError]) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Validation failed",
            "errors": [
                FieldErrorSchema(field=e.field, message=e.message).model_dump()
                for e in errors
            ],
        },
    )


def _domain_error_response(exc: DomainException, status_code: int | None = None) -> JSONResponse:
    if isinstance(exc, ValidationError) and exc.errors:
        return _validation_response(exc.errors)

    content: dict = {"detail": str(exc), "errorType": type(exc).__name__}
    if isinstance(exc, InsufficientStockError):
        content.update(
            productId=exc.product_id,
            requested=exc.requested,
            available=exc.available,
            retryable=exc.retryable,
        )
    elif isinstance(exc, (ProductNotFoundError, ProductUnavailableError)):
        content["productId"] = exc.product_id
    return JSONResponse(status_code=status_code or _status_for(exc), content=content)


def _field_name(loc: tuple) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or "body"


# --- Dependencies -------------------------------------------------------------


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_context(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: str = Header(default="customer"),
) -> RequestContext:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")
    try:
        role = Role(x_user_role)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role}") from None
    return RequestContext(user_id=x_user_id, role=role)


# --- Application factory ------------------------------------------------------


def create_app(container: Container | None = None) -> FastAPI:
    app = FastAPI(title="Grocer API")
    app.state.container = container or build_container()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _validation_response(
            [FieldError(_field_name(tuple(e["loc"])), e["msg"]) for e in exc.errors()]
        )

    @app.exception_handler(DomainException)
    async def domain_error_handler(request: Request, exc: DomainException) -> JSONResponse:
        return _domain_error_response(exc)

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    _register_order_routes(app)
    _register_product_routes(app)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


# --- Orders -------------------------------------------------------------------


def _register_order_routes(app: FastAPI) -> None:

    @app.post("/orders", response_model=OrderSchema, status_code=201)
    def place_order(
        request: PlaceOrderRequest,
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        address = request.delivery_address
        command = PlaceOrderCommand(
            items=[OrderItemSpec(product_id=i.product, quantity=i.quantity) for i in request.items],
            delivery_address=AddressSpec(
                street=address.street,
                city=address.city,
                state=address.state,
                pincode=address.pincode,
            ),
            payment_method=request.payment_method,
            notes=request.notes,
        )
        result = validate_place_order(command)
        if not result.ok:
            return _validation_response(result.errors)

        handler = PlaceOrderHandler(
            container.order_repo, container.product_repo, container.pricing
        )
        try:
            dto = handler.handle(command, context)
        except ProductNotFoundError as exc:
            # An unknown product in a cart is a bad request, not a missing resource.
            return _domain_error_response(exc, status_code=400)
        return order_schema(dto)

    @app.get("/orders/admin/all", response_model=OrderListResponse)
    def list_all_orders(
        page: int = Query(default=1),
        limit: int = Query(default=20),
        status: Optional[str] = Query(default=None),
        user: Optional[str] = Query(default=None),
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        result = ListAllOrdersHandler(container.order_repo).handle(
            context, page=page, limit=limit, status=status, user_id=user
        )
        return OrderListResponse(
            orders=[order_schema(o) for o in result.items],
            pagination=pagination_schema(result),
        )

    @app.get("/orders/admin/stats", response_model=OrderStatsResponse)
    def order_stats(
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        return stats_schema(OrderStatsHandler(container.order_repo).handle(context))

    @app.get("/orders", response_model=OrderListResponse)
    def list_orders(
        page: int = Query(default=1),
        limit: int = Query(default=10),
        status: Optional[str] = Query(default=None),
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        result = ListOrdersHandler(container.order_repo).handle(
            context, page=page, limit=limit, status=status
        )
        return OrderListResponse(
            orders=[order_schema(o) for o in result.items],
            pagination=pagination_schema(result),
        )

    @app.get("/orders/{order_id}", response_model=OrderSchema)
    def get_order(
        order_id: int,
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        return order_schema(ShowOrderHandler(container.order_repo).handle(order_id, context))

    @app.put("/orders/{order_id}/status", response_model=OrderSchema)
    def update_order_status(
        order_id: int,
        request: StatusUpdateRequest,
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        handler = UpdateOrderStatusHandler(container.order_repo)
        return order_schema(handler.handle(order_id, request.status, context))


# --- Products -----------------------------------------------------------------


def _register_product_routes(app: FastAPI) -> None:

    @app.get("/products", response_model=ProductListResponse)
    def list_products(
        page: int = Query(default=1),
        limit: int = Query(default=20),
        category: Optional[str] = Query(default=None),
        min_price: Optional[Decimal] = Query(default=None, alias="minPrice"),
        max_price: Optional[Decimal] = Query(default=None, alias="maxPrice"),
        search: Optional[str] = Query(default=None),
        sort_by: str = Query(default="created_at", alias="sortBy"),
        sort_order: str = Query(default="desc", alias="sortOrder"),
        container: Container = Depends(get_container),
    ):
        result = ListProductsHandler(container.product_repo).handle(
            page=page,
            limit=limit,
            category=category,
            min_price=min_price,
            max_price=max_price,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return ProductListResponse(
            products=[product_schema(p) for p in result.items],
            pagination=pagination_schema(result),
        )

    @app.get("/products/categories", response_model=list[CategorySchema])
    def list_categories():
        return [
            CategorySchema(value=c.value, label=c.label)
            for c in ListCategoriesHandler().handle()
        ]

    @app.get("/products/admin/all", response_model=ProductListResponse)
    def list_all_products(
        page: int = Query(default=1),
        limit: int = Query(default=20),
        category: Optional[str] = Query(default=None),
        search: Optional[str] = Query(default=None),
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        result = ListProductsHandler(container.product_repo).handle(
            page=page,
            limit=limit,
            category=category,
            search=search,
            include_unavailable=True,
            context=context,
        )
        return ProductListResponse(
            products=[product_schema(p) for p in result.items],
            pagination=pagination_schema(result),
        )

    @app.get("/products/{product_id}", response_model=ProductSchema)
    def get_product(product_id: str, container: Container = Depends(get_container)):
        return product_schema(ShowProductHandler(container.product_repo).handle(product_id))

    @app.post("/products", response_model=ProductSchema, status_code=201)
    def create_product(
        request: ProductCreateRequest,
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        dto = AddProductHandler(container.product_repo).handle(
            context,
            name=request.name,
            price=request.price,
            category=request.category,
            unit=request.unit,
            stock=request.stock,
            discount=request.discount,
            description=request.description,
            is_available=request.is_available,
        )
        return product_schema(dto)

    @app.put("/products/{product_id}", response_model=ProductSchema)
    def update_product(
        product_id: str,
        request: ProductUpdateRequest,
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        changes = ProductChanges(**request.model_dump())
        dto = UpdateProductHandler(container.product_repo).handle(context, product_id, changes)
        return product_schema(dto)

    @app.delete("/products/{product_id}")
    def delete_product(
        product_id: str,
        context: RequestContext = Depends(get_context),
        container: Container = Depends(get_container),
    ):
        DeleteProductHandler(container.product_repo).handle(context, product_id)
        return {"detail": "Product deleted successfully"}
