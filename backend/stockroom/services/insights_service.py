# Overview: Service-layer operations for AI insights; builds the inventory snapshot and calls the model.

"""
AI Insights Service

FLOW:
1. build_inventory_payload() snapshots products, purchase orders and
   invoices plus summary counts
2. generate_insights() sends ONE generateContent request and returns the
   first candidate's text verbatim

No retries and no caching: the page calls this on demand and a failure is
reported back to the user as-is.

ERRORS (InsightsError.status_code):
- 503: no API key configured
- 502: network failure, non-2xx answer, or no candidates
"""

from __future__ import annotations

import json

import httpx
from flask import current_app

from ..extensions import db
from ..models import Product, PurchaseOrder, Invoice
from stockroom.time_utils import to_iso_date, to_utc_z

MAX_PRODUCTS = 20
MAX_PURCHASE_ORDERS = 10
MAX_INVOICES = 10

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 2048,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

SYSTEM_PROMPT = """Você é um especialista em gestão de inventário e análise de dados para restaurantes. Analise os dados de inventário fornecidos e gere insights acionáveis em português, incluindo:

1. **Alertas de Estoque Baixo e Recomendações de Reabastecimento**
   - Identifique produtos críticos abaixo do estoque mínimo
   - Sugira quantidades ideais de reabastecimento
   - Calcule o tempo estimado até ruptura de estoque

2. **Tendências de Movimentação de Inventário**
   - Analise padrões de consumo por categoria
   - Identifique produtos de alta e baixa rotatividade
   - Detecte variações sazonais se aplicável

3. **Otimização de Custos**
   - Identifique produtos com alto custo de armazenagem
   - Sugira estratégias para redução de desperdício
   - Analise relação custo-benefício por fornecedor

4. **Análise de Performance de Fornecedores**
   - Avalie pontualidade de entregas
   - Compare preços entre fornecedores
   - Identifique fornecedores com melhor custo-benefício

5. **Insights por Categoria de Produto**
   - Analise performance por categoria (Padaria, Restaurante, Bar)
   - Identifique categorias com maior margem
   - Sugira ajustes no mix de produtos

6. **Recomendações para Melhorar o Giro de Estoque**
   - Identifique produtos parados ou com baixo giro
   - Sugira ações para produtos de baixa rotatividade
   - Calcule o giro de estoque ideal por categoria

**Formato da Resposta:**
- Use marcadores e subtítulos claros
- Seja objetivo e focado em ações práticas
- Inclua números e métricas sempre que possível
- Priorize insights de maior impacto financeiro
- Limite a resposta a 800 palavras máximo"""

USER_PROMPT_TEMPLATE = """Analise os seguintes dados de inventário do restaurante {restaurant}:

**Resumo:**
- Total de produtos: {totalProducts}
- Produtos com estoque baixo: {lowStockProducts}
- Total de pedidos de compra: {totalPurchaseOrders}
- Pedidos pendentes: {pendingOrders}
- Total de faturas: {totalInvoices}

**Produtos Detalhados:**
{products}

**Pedidos de Compra Recentes:**
{purchaseOrders}

**Faturas Recentes:**
{invoices}

Gere insights acionáveis focados em otimização de custos, redução de desperdício e melhoria da eficiência operacional."""


class InsightsError(Exception):
    """Raised when insights cannot be generated."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


def build_inventory_payload() -> dict:
    """
    Snapshot of the inventory for the prompt.

    Summary counts cover everything; the detail lists are capped at
    20 products / 10 orders / 10 invoices (newest first).
    """
    products = db.session.query(Product).order_by(Product.name.asc(), Product.id.asc()).all()
    orders = db.session.query(PurchaseOrder).order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc()).all()
    invoices = db.session.query(Invoice).order_by(Invoice.created_at.desc(), Invoice.id.desc()).all()

    return {
        "summary": {
            "totalProducts": len(products),
            "lowStockProducts": sum(1 for p in products if p.is_low_stock),
            "totalPurchaseOrders": len(orders),
            "pendingOrders": sum(1 for o in orders if o.delivery_status == "pending"),
            "totalInvoices": len(invoices),
        },
        "products": [
            {
                "name": p.name,
                "category": p.category,
                "unit": p.unit,
                "quantity_in_stock": p.quantity_in_stock,
                "threshold": p.threshold,
                "unit_price": p.unit_price_cents / 100,
                "vendor_name": p.vendor_name,
                "expiration_date": to_iso_date(p.expiration_date),
            }
            for p in products[:MAX_PRODUCTS]
        ],
        "purchaseOrders": [
            {
                "order_number": o.order_number,
                "supplier_name": o.supplier_name,
                "order_date": to_iso_date(o.order_date),
                "expected_delivery": to_iso_date(o.expected_delivery),
                "delivery_status": o.delivery_status,
                "total_amount": o.total_cents / 100,
            }
            for o in orders[:MAX_PURCHASE_ORDERS]
        ],
        "invoices": [
            {
                "invoice_number": i.invoice_number,
                "customer_name": i.customer_name,
                "total_amount": i.total_cents / 100,
                "created_at": to_utc_z(i.created_at),
            }
            for i in invoices[:MAX_INVOICES]
        ],
    }


def build_prompt(payload: dict, restaurant: str) -> str:
    summary = payload.get("summary", {})

    def dump(key: str, limit: int) -> str:
        return json.dumps((payload.get(key) or [])[:limit], ensure_ascii=False, indent=2)

    user_prompt = USER_PROMPT_TEMPLATE.format(
        restaurant=restaurant,
        totalProducts=summary.get("totalProducts", 0),
        lowStockProducts=summary.get("lowStockProducts", 0),
        totalPurchaseOrders=summary.get("totalPurchaseOrders", 0),
        pendingOrders=summary.get("pendingOrders", 0),
        totalInvoices=summary.get("totalInvoices", 0),
        products=dump("products", MAX_PRODUCTS),
        purchaseOrders=dump("purchaseOrders", MAX_PURCHASE_ORDERS),
        invoices=dump("invoices", MAX_INVOICES),
    )
    return f"{SYSTEM_PROMPT}\n\n{user_prompt}"


def build_request_body(prompt: str) -> dict:
    return {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": GENERATION_CONFIG,
        "safetySettings": SAFETY_SETTINGS,
    }


def _client() -> httpx.Client:
    config = current_app.config
    return httpx.Client(
        timeout=config.get("INSIGHTS_TIMEOUT_SECONDS", 60),
        transport=config.get("INSIGHTS_HTTP_TRANSPORT"),
    )


def generate_insights(payload: dict) -> str:
    """
    Ask the model for insights on `payload` and return its text.

    Raises InsightsError (503 when unconfigured, 502 otherwise).
    """
    config = current_app.config
    logger = current_app.logger

    api_key = config.get("GOOGLE_API_KEY")
    if not api_key:
        raise InsightsError("GOOGLE_API_KEY is not configured", status_code=503)

    url = f"{config['INSIGHTS_API_URL'].rstrip('/')}/{config['INSIGHTS_MODEL']}:generateContent"
    body = build_request_body(build_prompt(payload, config.get("RESTAURANT_NAME", "Zola Pizza")))

    try:
        with _client() as client:
            response = client.post(url, params={"key": api_key}, json=body)
    except httpx.HTTPError as e:
        logger.error("Insights request failed: %s", e)
        raise InsightsError("Could not reach the AI service") from e

    if response.status_code < 200 or response.status_code >= 300:
        logger.error("Google AI API error: %s %s", response.status_code, response.text)
        raise InsightsError(f"Google AI API error: {response.status_code}")

    try:
        data = response.json()
    except ValueError as e:
        raise InsightsError("Invalid response from AI model") from e

    candidates = data.get("candidates") or []
    if not candidates:
        raise InsightsError("No response from AI model")

    try:
        return candidates[0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise InsightsError("No response from AI model") from e
