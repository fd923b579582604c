"""
Constantes do cliente Sherdog.
"""

# Headers que imitam um navegador real para evitar bloqueios WAF
DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9,pt-BR;q=0.8",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}

FIGHTER_PATH = "/fighter/"

# Seletores da página de perfil
NAME_SELECTORS = ("h1 .fn", "span.fn", "h1[itemprop='name']")
NICKNAME_SELECTORS = ("h1 .nickname", "span.nickname")
FIGHTER_LINK_SELECTOR = "a[href*='/fighter/']"

# Assinaturas de bloqueio (Cloudflare / WAF)
CLOUDFLARE_SIGNATURES = [
    "cf-browser-verification",
    "just a moment...",
    "attention required! | cloudflare",
    "cf-challenge",
]

# Aspas removidas das bordas do apelido ("Bones" -> Bones)
NICKNAME_QUOTES = "\"'“”‘’"
