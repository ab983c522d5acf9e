from typing import Annotated, Dict, List, Tuple

from fastapi import APIRouter, Depends

from ...models.graph import GraphData, GraphLink, GraphNode
from ...models.item import SavedItem
from ...services.item_store import ItemStore, get_item_store
from ..middleware import AuthContext, get_auth_context

router = APIRouter()


def build_graph(items: List[SavedItem]) -> GraphData:
    """Nodes for every item, one undirected link per connected pair."""
    known = {item.id for item in items}
    links: Dict[Tuple[str, str], GraphLink] = {}
    degree: Dict[str, int] = {item.id: 0 for item in items}

    for item in items:
        for other_id in item.connections:
            if other_id not in known or other_id == item.id:
                continue
            key = tuple(sorted((item.id, other_id)))
            if key in links:
                if links[key].reason is None and item.connection_reasons.get(other_id):
                    links[key].reason = item.connection_reasons[other_id]
                continue
            links[key] = GraphLink(
                source=item.id,
                target=other_id,
                reason=item.connection_reasons.get(other_id) or None,
            )
            degree[item.id] += 1
            degree[other_id] += 1

    nodes = [
        GraphNode(
            id=item.id,
            label=item.title,
            group=item.tags[0] if item.tags else "Uncategorized",
            val=degree[item.id] + 1,
        )
        for item in items
    ]
    return GraphData(nodes=nodes, links=list(links.values()))


@router.get("/api/graph", response_model=GraphData)
async def get_graph_data(
    auth: Annotated[AuthContext, Depends(get_auth_context)],
    store: Annotated[ItemStore, Depends(get_item_store)],
) -> GraphData:
    """Retrieve graph visualization data for the caller's items."""
    return build_graph(await store.get_items_by_user(auth.user_id))
