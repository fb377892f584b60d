"""Stock view, alert and mutation result schemas."""

from datetime import date

from pydantic import BaseModel, ConfigDict

from src.models.enums import Importance
from src.schemas.batch import BatchResponse
from src.services.aggregation import StockAlert
from src.services.stock_service import StockEvaluation


class GroupedProductResponse(BaseModel):
    """One row of the grouped stock view."""

    model_config = ConfigDict(from_attributes=True)

    product_id: int
    name: str
    category: str
    unit: str
    importance: Importance
    min_quantity: float | None
    is_ghost: bool
    threshold: float | None
    total_quantity: float
    healthy_quantity: float
    expiring_quantity: float
    batch_count: int
    earliest_expiry: date | None
    has_expiring_batch: bool
    batches: list[BatchResponse]


class StockAlertResponse(BaseModel):
    """A critical alert or a suggestion."""

    product_id: int
    name: str
    category: str
    importance: Importance
    reason: str
    label: str
    severity: str
    threshold: float | None
    total_quantity: float
    healthy_quantity: float
    expiring_quantity: float

    @classmethod
    def from_alert(cls, alert: StockAlert) -> "StockAlertResponse":
        product = alert.product
        return cls(
            product_id=product.product_id,
            name=product.name,
            category=product.category,
            importance=product.importance,
            reason=alert.reason.value,
            label=alert.label,
            severity=alert.severity,
            threshold=product.threshold,
            total_quantity=product.total_quantity,
            healthy_quantity=product.healthy_quantity,
            expiring_quantity=product.expiring_quantity,
        )


class ReconciliationResponse(BaseModel):
    """Shopping list entries created and cleared by reconciliation."""

    model_config = ConfigDict(from_attributes=True)

    created: list[str]
    cleared: list[str]


class StockEvaluationResponse(BaseModel):
    """Grouped view, alert feeds and reconciliation outcome."""

    products: list[GroupedProductResponse]
    critical: list[StockAlertResponse]
    suggestions: list[StockAlertResponse]
    reconciliation: ReconciliationResponse

    @classmethod
    def from_evaluation(cls, evaluation: StockEvaluation) -> "StockEvaluationResponse":
        view = evaluation.view
        return cls(
            products=[GroupedProductResponse.model_validate(p) for p in view.products],
            critical=[StockAlertResponse.from_alert(a) for a in view.critical],
            suggestions=[StockAlertResponse.from_alert(a) for a in view.suggestions],
            reconciliation=ReconciliationResponse.model_validate(evaluation.reconciliation),
        )


class StockSummaryResponse(BaseModel):
    """Dashboard counters."""

    model_config = ConfigDict(from_attributes=True)

    critical_count: int
    high_count: int
    normal_count: int
    expiring_only_count: int
    has_critical_expiry: bool
    has_high_expiry: bool
    shopping_count: int
    max_shopping_priority: str
    reception_count: int


class ConsumptionResponse(BaseModel):
    """Result of consuming stock."""

    product_id: int
    consumed: float
    updated_batch_ids: list[int]
    sentinel_batch_ids: list[int]
    deleted_batch_ids: list[int]
    stock: StockEvaluationResponse


class MoveResponse(BaseModel):
    """Result of moving or splitting a batch."""

    source: BatchResponse
    created: BatchResponse | None  # set when the batch was split
    stock: StockEvaluationResponse


class BatchDeletionResponse(BaseModel):
    """Result of deleting a batch."""

    batch_id: int
    outcome: str  # deleted | sentinel | product_deleted
    stock: StockEvaluationResponse


class ReceptionResponse(BaseModel):
    """Result of receiving a bought shopping entry."""

    product_id: int
    product_created: bool
    batch: BatchResponse
    stock: StockEvaluationResponse
