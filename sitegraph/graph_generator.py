"""
Knowledge graph generator - company document to nodes and edges.

Pure and total: any CompanyDocument produces a graph with exactly one
Company node, and every other node is joined to it by one edge.
"""

from collections import Counter
from typing import List

from .models import CompanyDocument, Graph, GraphEdge, GraphNode, GraphStats
from .utils import slugify


def _bare_domain(domain: str) -> str:
    for scheme in ("https://", "http://"):
        if domain.startswith(scheme):
            return domain[len(scheme):]
    return domain


def company_node_id(document: CompanyDocument) -> str:
    company = document.company
    return slugify(_bare_domain(company.domain or "")) or slugify(company.name) or "company"


def compute_stats(nodes: List[GraphNode], edges: List[GraphEdge]) -> GraphStats:
    return GraphStats(
        total_nodes=len(nodes),
        total_edges=len(edges),
        node_types=dict(Counter(node.type for node in nodes)),
    )


def generate(document: CompanyDocument) -> Graph:
    company = document.company
    company_id = company_node_id(document)

    nodes = [GraphNode(
        id=company_id,
        type="Company",
        label=company.name or company.domain or company_id,
        data={
            "domain": company.domain,
            "description": company.short_description,
            "industry": company.industry,
            "sub_industry": company.sub_industry,
            "logo_url": company.logo_url,
        },
    )]
    edges: List[GraphEdge] = []

    for idx, product in enumerate(document.products_services):
        if not product.name:
            continue
        product_id = f"product:{slugify(product.name)}-{idx}"
        nodes.append(GraphNode(
            id=product_id,
            type="Product",
            label=product.name,
            data={"description": product.description, "is_placeholder": product.is_placeholder},
        ))
        edges.append(GraphEdge(source=company_id, target=product_id, type="HAS_PRODUCT"))

    headquarters = document.locations.headquarters
    if headquarters:
        location_id = f"location:{slugify(headquarters)}"
        nodes.append(GraphNode(
            id=location_id,
            type="Location",
            label=headquarters,
            data={"type": "Headquarters", "addresses": document.locations.addresses},
        ))
        edges.append(GraphEdge(source=company_id, target=location_id, type="HEADQUARTERED_AT"))

    for idx, person in enumerate(document.people):
        # Role placeholders have no name and no node
        if not person.name:
            continue
        person_id = f"person:{slugify(person.name)}-{idx}"
        nodes.append(GraphNode(
            id=person_id,
            type="Person",
            label=person.name,
            data={"title": person.title, "role_category": person.role_category},
        ))
        edges.append(GraphEdge(source=person_id, target=company_id, type="WORKS_AT"))

    for idx, tech in enumerate(document.tech_stack):
        if not tech:
            continue
        tech_id = f"tech:{slugify(tech)}-{idx}"
        nodes.append(GraphNode(id=tech_id, type="Technology", label=tech, data={}))
        edges.append(GraphEdge(source=company_id, target=tech_id, type="USES_TECH"))

    return Graph(nodes=nodes, edges=edges, stats=compute_stats(nodes, edges))
