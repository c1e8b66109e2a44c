"""Invoice mind map: client → category → product tree laid out with fixed offsets.

The layout is a pure function of the lines, the catalog, the set of expanded
node ids and the viewport size. Children are stacked vertically around their
parent's centre one level to the right:

    child_y(i) = parent_y - (n - 1) * spacing / 2 + i * spacing
"""

from collections import OrderedDict
from typing import Any, Iterable, Optional, Sequence

from portal.application.services.rollup import CategoryResolver, line_total, parse_date, parse_number
from portal.config import get_settings
from portal.domain.schemas.mindmap import MindMap, MindMapEdge, MindMapNode, MindMapStats, Position

settings = get_settings()

ROOT_ID = "root-business"
DEFAULT_WIDTH = 1200
DEFAULT_HEIGHT = 800

LEVEL_SPACING = 350
NODE_SPACING = 120
CATEGORY_SPACING = 180
PRODUCT_SPACING = 100

UNKNOWN_CLIENT = "Unknown Client"

# category -> (background, border)
CATEGORY_COLORS = {
    "Fertilizers": ("#dcfce7", "#16a34a"),
    "Engrais": ("#dcfce7", "#16a34a"),
    "Pesticides": ("#fee2e2", "#dc2626"),
    "Fongicides": ("#f3e8ff", "#7c3aed"),
    "Fongicide": ("#f3e8ff", "#7c3aed"),
    "Herbicides": ("#dbeafe", "#2563eb"),
    "Insecticides": ("#fef3c7", "#d97706"),
    "Insecticide": ("#fef3c7", "#d97706"),
    "Seeds": ("#f1f5f9", "#64748b"),
    "Tools": ("#f8fafc", "#475569"),
    "Irrigation": ("#e0f2fe", "#0891b2"),
    "Uncategorized": ("#f9fafb", "#6b7280"),
}
DEFAULT_COLORS = ("#f9fafb", "#6b7280")

ROOT_COLORS = ("#1e293b", "#475569")
CLIENT_COLORS = ("#f8fafc", "#cbd5e1")
PRODUCT_COLORS = ("#ffffff", "#9ca3af")
ROOT_EDGE_COLOR = "#64748b"


def truncate(text: Optional[str], max_length: int) -> str:
    if not text:
        return "N/A"
    return text[:max_length] + "..." if len(text) > max_length else text


def category_colors(category: str) -> tuple[str, str]:
    return CATEGORY_COLORS.get(category, DEFAULT_COLORS)


def _money(value: float) -> str:
    return f"{value:,.2f} {settings.CURRENCY}"


def _stack(center: float, count: int, spacing: int) -> list[float]:
    start = center - (count - 1) * spacing / 2
    return [start + i * spacing for i in range(count)]


def _group(items: Iterable[Any], key) -> "OrderedDict[str, list]":
    groups: "OrderedDict[str, list]" = OrderedDict()
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def _edge(source: str, target: str, color: str) -> MindMapEdge:
    return MindMapEdge(id=f"e-{source}-{target}", source=source, target=target, color=color)


def build_mindmap(
    lines: Sequence[Any],
    products: Iterable[Any],
    expanded: Optional[Iterable[str]] = None,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
) -> MindMap:
    """Lay out the mind map for already-filtered invoice lines."""
    expanded_ids = set(expanded) if expanded is not None else {ROOT_ID}
    resolver = CategoryResolver(products, normalized_match=True)
    cx, cy = width / 2, height / 2

    nodes: list[MindMapNode] = []
    edges: list[MindMapEdge] = []

    clients = _group(lines, lambda line: line.client_name or UNKNOWN_CLIENT)
    total_revenue = sum(line_total(line) for line in lines)
    stats = MindMapStats(
        total_clients=len(clients),
        total_orders=len(lines),
        total_revenue=round(total_revenue, 2),
    )

    nodes.append(MindMapNode(
        id=ROOT_ID,
        kind="root",
        label=(
            f"BUSINESS OVERVIEW\n{stats.total_clients} Clients • {stats.total_orders} Orders\n"
            f"Revenue: {_money(total_revenue)}"
        ),
        position=Position(x=cx - 150, y=cy - 50),
        width=300,
        height=100,
        background=ROOT_COLORS[0],
        border=ROOT_COLORS[1],
        expanded=ROOT_ID in expanded_ids,
        data=stats.model_dump(),
    ))

    client_x = cx + LEVEL_SPACING
    for (client, client_lines), client_y in zip(clients.items(), _stack(cy, len(clients), NODE_SPACING)):
        client_id = f"client-{client}"
        client_total = sum(line_total(line) for line in client_lines)
        unique_products = len({line.product for line in client_lines})

        nodes.append(MindMapNode(
            id=client_id,
            kind="client",
            label=(
                f"{truncate(client, 20)}\n{len(client_lines)} orders • {unique_products} products\n"
                f"Total: {_money(client_total)}"
            ),
            position=Position(x=client_x, y=client_y - 45),
            width=250,
            height=90,
            background=CLIENT_COLORS[0],
            border=CLIENT_COLORS[1],
            expanded=client_id in expanded_ids,
            data={"client": client, "orders": len(client_lines), "products": unique_products,
                  "total": round(client_total, 2)},
        ))
        edges.append(_edge(ROOT_ID, client_id, ROOT_EDGE_COLOR))

        if client_id not in expanded_ids:
            continue

        categories = _group(client_lines, lambda line: resolver.resolve(line.product))
        category_x = client_x + LEVEL_SPACING
        for (category, category_lines), category_y in zip(
            categories.items(), _stack(client_y, len(categories), CATEGORY_SPACING)
        ):
            category_id = f"category-{client}-{category}"
            background, border = category_colors(category)
            category_total = sum(line_total(line) for line in category_lines)
            category_quantity = sum(parse_number(line.quantity) for line in category_lines)

            nodes.append(MindMapNode(
                id=category_id,
                kind="category",
                label=(
                    f"{truncate(category, 16)}\n{len(category_lines)} items\n"
                    f"Qty: {category_quantity:g} • {_money(category_total)}"
                ),
                position=Position(x=category_x, y=category_y - 40),
                width=200,
                height=80,
                background=background,
                border=border,
                expanded=category_id in expanded_ids,
                data={"client": client, "category": category, "items": len(category_lines),
                      "quantity": category_quantity, "total": round(category_total, 2)},
            ))
            edges.append(_edge(client_id, category_id, border))

            if category_id not in expanded_ids:
                continue

            product_x = category_x + LEVEL_SPACING
            for line, product_y in zip(
                category_lines, _stack(category_y, len(category_lines), PRODUCT_SPACING)
            ):
                product_id = f"product-{client}-{category}-{line.id}"
                line_date = parse_date(line.date)
                item_total = line_total(line)

                nodes.append(MindMapNode(
                    id=product_id,
                    kind="product",
                    label=(
                        f"{truncate(line.product, 20)}\n"
                        f"Qty: {parse_number(line.quantity):g} • Price: {_money(parse_number(line.price))}\n"
                        f"Total: {_money(item_total)}\n"
                        f"Date: {line_date.isoformat() if line_date else 'No date'}"
                    ),
                    position=Position(x=product_x, y=product_y - 45),
                    width=220,
                    height=90,
                    background=PRODUCT_COLORS[0],
                    border=PRODUCT_COLORS[1],
                    data={"line_id": line.id, "invoice_id": line.invoice_id, "product": line.product,
                          "total": round(item_total, 2)},
                ))
                edges.append(_edge(category_id, product_id, PRODUCT_COLORS[1]))

    return MindMap(nodes=nodes, edges=edges, stats=stats)
