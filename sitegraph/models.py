from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional, Literal

RoleCategory = Literal["Leadership", "Engineering", "Sales", "Marketing", "Operations", "Other"]
NodeType = Literal["Company", "Product", "Person", "Location", "Technology"]
EdgeType = Literal["HAS_PRODUCT", "HEADQUARTERED_AT", "WORKS_AT", "USES_TECH"]
HeadquartersSource = Literal["place_lookup", "hq_phrase", "footer_address", "address_city", ""]


# ============================================================================
# PAGE RECORDS
# ============================================================================

class Link(BaseModel):
    url: str
    anchor_text: str = ""

class Image(BaseModel):
    url: str
    alt_text: str = ""

class ProductCandidate(BaseModel):
    name: str
    description: str = ""
    source_strategy: str

class CategoryCandidate(BaseModel):
    name: str
    source_strategy: str

class PersonCandidate(BaseModel):
    name: str
    title: str = ""
    source_strategy: str

class Page(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    title: str = ""
    meta_description: str = ""
    meta_keywords: str = ""
    text: str = ""
    links: List[Link] = []
    external_links: List[Link] = []
    images: List[Image] = []
    tech_signals: List[str] = []
    product_candidates: List[ProductCandidate] = []
    category_candidates: List[CategoryCandidate] = []
    people_candidates: List[PersonCandidate] = []
    html: str = ""

class CrawlResult(BaseModel):
    domain: str
    pages: List[Page] = []
    scraped_at: str
    failed_urls: List[str] = []


# ============================================================================
# COMPANY RECORDS
# ============================================================================

class Person(BaseModel):
    name: str = ""
    title: str = ""
    role_category: RoleCategory = "Other"
    is_placeholder: bool = False

class Product(BaseModel):
    name: str
    description: str = ""
    source: Optional[str] = None
    is_placeholder: bool = False

class Coordinates(BaseModel):
    lat: float
    lng: float

class LocationSet(BaseModel):
    headquarters: str = ""
    addresses: List[str] = []
    coordinates: Optional[Coordinates] = None
    headquarters_source: HeadquartersSource = ""

class SocialMedia(BaseModel):
    linkedin: str = ""
    twitter: str = ""
    facebook: str = ""
    instagram: str = ""

class Contact(BaseModel):
    emails: List[str] = []
    phones: List[str] = []
    contact_page: str = ""

class IndustryMatch(BaseModel):
    sub_industry: str
    industry: str = ""
    sector: str = ""
    score: int = 0
    sic_code: str = ""
    sic_description: str = ""

class ClassificationDetail(BaseModel):
    sector: str = ""
    industry: str = ""
    sub_industry: str = ""
    sic_code: str = ""
    sic_description: str = ""
    match_score: int = 0

class CompanyIdentity(BaseModel):
    name: str = ""
    domain: str = ""
    logo_url: str = ""
    short_description: str = ""
    long_description: str = ""
    industry: str = ""
    sub_industry: str = ""
    classification: Optional[ClassificationDetail] = None

class HeuristicData(BaseModel):
    domain: str
    company_name: str = ""
    emails: List[str] = []
    phones: List[str] = []
    social_media: SocialMedia = Field(default_factory=SocialMedia)
    tech_stack: List[str] = []
    logo_url: str = ""
    products: List[Product] = []
    people: List[Person] = []
    category_candidates: List[CategoryCandidate] = []
    locations: LocationSet = Field(default_factory=LocationSet)

class CompanyDocument(BaseModel):
    company: CompanyIdentity = Field(default_factory=CompanyIdentity)
    products_services: List[Product] = []
    locations: LocationSet = Field(default_factory=LocationSet)
    people: List[Person] = []
    contact: Contact = Field(default_factory=Contact)
    social_media: SocialMedia = Field(default_factory=SocialMedia)
    tech_stack: List[str] = []


# ============================================================================
# GRAPH RECORDS
# ============================================================================

class GraphNode(BaseModel):
    id: str
    type: NodeType
    label: str
    data: Dict[str, Any] = {}

class GraphEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str = Field(..., alias="from")
    target: str = Field(..., alias="to")
    type: EdgeType

class GraphStats(BaseModel):
    total_nodes: int = 0
    total_edges: int = 0
    node_types: Dict[str, int] = {}

class Graph(BaseModel):
    nodes: List[GraphNode] = []
    edges: List[GraphEdge] = []
    stats: GraphStats = Field(default_factory=GraphStats)

class AnalysisResult(BaseModel):
    company: CompanyDocument
    graph: Graph
    warnings: List[str] = []

class DomainOutcome(BaseModel):
    domain: str
    success: bool
    result: Optional[AnalysisResult] = None
    error: str = ""
