"""
파이프라인 상수

카테고리, 기본 RSS 소스, 검색어 → 카테고리 키워드, AI 요금 등
코드 여러 곳에서 공유하는 값을 모아둡니다.
"""
from typing import Dict, List, Tuple

# ===== 카테고리 =====
VALID_CATEGORIES: Tuple[str, ...] = (
    "general",
    "internacional",
    "deportes",
    "economia",
    "politica",
    "ciencia",
    "tecnologia",
    "cultura",
    "salud",
    "entretenimiento",
    "espana",
    "ciencia-tecnologia",
    "local",
)

LOCAL_CATEGORY = "local"

# 전체 수집에서 제외 (도시 검색어가 필요함)
QUERY_ONLY_CATEGORIES: Tuple[str, ...] = (LOCAL_CATEGORY,)

# 영어 카테고리 → 스페인어 카테고리
CATEGORY_ALIASES: Dict[str, str] = {
    "business": "economia",
    "entertainment": "cultura",
    "health": "ciencia",
    "science": "ciencia",
    "sports": "deportes",
    "technology": "tecnologia",
    "world": "internacional",
    "politics": "politica",
}

DEFAULT_CATEGORY = "general"

# ===== 수집 한도 =====
DEFAULT_PAGE_SIZE = 20
MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 100
DESCRIPTION_MAX_LENGTH = 300

# ===== 분석 한도 =====
DEFAULT_ANALYSIS_LIMIT = 10
MIN_ANALYSIS_LIMIT = 1
MAX_ANALYSIS_LIMIT = 100

# ===== 검색 한도 =====
MIN_QUERY_LENGTH = 2
DEFAULT_SEARCH_LIMIT = 20
MAX_SEARCH_LIMIT = 50

# ===== 기본 RSS 소스 (카테고리별) =====
DEFAULT_RSS_SOURCES: Dict[str, List[str]] = {
    "general": [
        "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/portada",
        "https://e00-elmundo.uecdn.es/elmundo/rss/portada.xml",
        "https://www.abc.es/rss/2.0/portada/",
        "https://www.lavanguardia.com/rss/home.xml",
        "https://www.20minutos.es/rss/",
        "https://www.elconfidencial.com/rss/",
        "https://www.eldiario.es/rss/",
    ],
    "internacional": [
        "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/internacional",
        "https://e00-elmundo.uecdn.es/elmundo/rss/internacional.xml",
        "https://www.abc.es/rss/2.0/internacional/",
        "https://www.lavanguardia.com/rss/internacional.xml",
    ],
    "deportes": [
        "https://as.com/rss/tags/ultimas_noticias.xml",
        "https://e00-marca.uecdn.es/rss/portada.xml",
        "https://www.mundodeportivo.com/rss/futbol.xml",
        "https://www.sport.es/rss/last-news/football.xml",
        "https://www.superdeporte.es/rss/section/3",
    ],
    "economia": [
        "https://www.20minutos.es/rss/economia",
        "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/economia",
        "https://www.eleconomista.es/rss/rss-economia.php",
        "https://cincodias.elpais.com/seccion/rss/",
        "https://www.expansion.com/rss/portada.xml",
    ],
    "politica": [
        "https://www.europapress.es/rss/rss.aspx?ch=00066",
        "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/espana",
        "https://www.abc.es/rss/2.0/espana/",
        "https://www.eldiario.es/rss/politica/",
    ],
    "ciencia": [
        "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/ciencia",
        "https://www.20minutos.es/rss/salud",
        "https://www.agenciasinc.es/var/ezwebin_site/storage/rss/rss_design_es.xml",
        "https://www.abc.es/rss/2.0/ciencia/",
    ],
    "tecnologia": [
        "https://www.20minutos.es/rss/tecnologia",
        "https://e00-elmundo.uecdn.es/elmundo/rss/navegante.xml",
        "https://www.xataka.com/index.xml",
        "https://www.genbeta.com/index.xml",
        "https://hipertextual.com/feed",
    ],
    "cultura": [
        "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/cultura",
        "https://www.20minutos.es/rss/cultura",
        "https://www.abc.es/rss/2.0/cultura/",
        "https://e00-elmundo.uecdn.es/elmundo/rss/cultura.xml",
    ],
    "salud": [
        "https://www.20minutos.es/rss/salud",
        "https://news.google.com/rss/search?q=salud+sanidad&hl=es&gl=ES&ceid=ES:es",
    ],
    "entretenimiento": [
        "https://news.google.com/rss/search?q=cine+OR+series+OR+musica+OR+videojuegos+OR+espectaculos&hl=es&gl=ES&ceid=ES:es",
    ],
    "espana": [
        "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/espana",
        "https://www.abc.es/rss/2.0/espana/",
        "https://www.europapress.es/rss/rss.aspx?ch=00066",
    ],
    "ciencia-tecnologia": [
        "https://feeds.elpais.com/mrss-s/pages/ep/site/elpais.com/section/ciencia",
        "https://www.agenciasinc.es/var/ezwebin_site/storage/rss/rss_design_es.xml",
        "https://www.xataka.com/index.xml",
    ],
}

# URL 일부 → 매체 이름 (순서 중요: cincodias가 elpais보다 먼저)
SOURCE_NAME_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("cincodias.elpais.com", "Cinco Días"),
    ("elpais.com", "El País"),
    ("elmundo.", "El Mundo"),
    ("abc.es", "ABC"),
    ("lavanguardia.com", "La Vanguardia"),
    ("20minutos.es", "20 Minutos"),
    ("elconfidencial.com", "El Confidencial"),
    ("eldiario.es", "elDiario.es"),
    ("europapress.es", "Europa Press"),
    ("as.com", "AS"),
    ("marca.", "Marca"),
    ("mundodeportivo.com", "Mundo Deportivo"),
    ("sport.es", "Sport"),
    ("superdeporte.es", "Superdeporte"),
    ("eleconomista.es", "El Economista"),
    ("expansion.com", "Expansión"),
    ("agenciasinc.es", "SINC"),
    ("xataka.com", "Xataka"),
    ("genbeta.com", "Genbeta"),
    ("hipertextual.com", "Hipertextual"),
    ("news.google.com", "Google News"),
)

# ===== 검색어 → 카테고리 키워드 =====
QUERY_CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "deportes": ["deporte", "futbol", "fútbol", "liga", "baloncesto", "tenis", "f1"],
    "economia": ["economía", "economia", "dinero", "bolsa", "mercados", "finanzas", "empresas"],
    "politica": ["política", "politica", "gobierno", "congreso", "elecciones", "partidos"],
    "tecnologia": ["tecnología", "tecnologia", "tech", "ia", "inteligencia artificial", "apps", "móvil"],
    "ciencia": ["ciencia", "salud", "medicina", "investigación", "espacio", "clima"],
    "cultura": ["cultura", "cine", "música", "arte", "libros", "teatro"],
    "internacional": ["internacional", "mundo", "global", "europa", "eeuu", "asia"],
}

# ===== Gemini 요금 (USD / 1M 토큰) =====
GEMINI_INPUT_COST_PER_1M_TOKENS = 0.075
GEMINI_OUTPUT_COST_PER_1M_TOKENS = 0.30
EUR_USD_RATE = 0.95

# ===== 외부 검색 링크 =====
GOOGLE_NEWS_SEARCH_URL = "https://news.google.com/search"
GOOGLE_NEWS_RSS_SEARCH_URL = "https://news.google.com/rss/search"
