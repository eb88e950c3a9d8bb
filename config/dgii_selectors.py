"""
Selectores y configuración para el listado de emisores electrónicos de DGII.
Identificados mediante exploración manual del sitio.

Fuente: https://dgii.gov.do/app/WebApps/Misc/VerLista/?doc=EEC160525

El markup del portal cambia sin aviso, por eso los selectores se prueban en
cascada: primero los estructurales, luego XPath por texto/atributos y por
último un recorrido completo del DOM desde la página.
"""

# ============================================================================
# PÁGINA DEL LISTADO
# ============================================================================

DGII_URL = "https://dgii.gov.do/app/WebApps/Misc/VerLista/?doc=EEC160525"

# Palabra clave del disparador de descarga (sensible a mayúsculas en la etapa 1)
TRIGGER_KEYWORD = "CSV"

FILE_EXTENSION = ".csv"

# Extensiones que usan los navegadores mientras escriben una descarga
PARTIAL_DOWNLOAD_EXTENSIONS = (".crdownload", ".part", ".download", ".tmp")

# ============================================================================
# ETAPA 1: SELECTORES ESTRUCTURALES
# ============================================================================

def structural_selectors(keyword: str = TRIGGER_KEYWORD) -> list:
    """Selectores CSS en orden de prioridad para el botón de descarga."""
    lower = keyword.lower()
    return [
        f'input[value="{keyword}"]',
        f'button[value="{keyword}"]',
        f'input[type="submit"][value="{keyword}"]',
        f'input[type="button"][value="{keyword}"]',
        f'a[href*="{lower}"]',
        f'*[onclick*="{lower}"]',
        f'*[onclick*="{keyword}"]',
        f'form[action*="{lower}"] input[type="submit"]',
        f'form[action*="{lower}"] button',
        f'input[name*="{lower}"]',
        f'input[id*="{lower}"]',
    ]


# ============================================================================
# ETAPA 2: XPATH POR TEXTO / ATRIBUTOS (sin distinguir mayúsculas)
# ============================================================================

_UPPER = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
_LOWER = "abcdefghijklmnopqrstuvwxyz"


def _ci(expr: str) -> str:
    return f"translate({expr}, '{_LOWER}', '{_UPPER}')"


def xpath_queries(keyword: str = TRIGGER_KEYWORD) -> list:
    """Consultas XPath (prefijo xpath=) para tags clicables."""
    kw = keyword.upper()
    return [
        f"xpath=//button[contains({_ci('normalize-space(.)')}, '{kw}')]",
        f"xpath=//a[contains({_ci('normalize-space(.)')}, '{kw}')]",
        f"xpath=//input[(@type='submit' or @type='button') and contains({_ci('@value')}, '{kw}')]",
        f"xpath=//button[contains({_ci('@value')}, '{kw}') or contains({_ci('@title')}, '{kw}')]",
        f"xpath=//a[contains({_ci('@href')}, '{kw}') or contains({_ci('@title')}, '{kw}')]",
    ]


# ============================================================================
# ETAPA 3: RECORRIDO COMPLETO DEL DOM (se evalúa dentro de la página)
# ============================================================================

# Criterio único de visibilidad/interactividad usado por las tres etapas
VISIBILITY_SCRIPT = """
el => {
    const rect = el.getBoundingClientRect();
    const style = window.getComputedStyle(el);
    return rect.width > 0 && rect.height > 0
        && style.visibility !== 'hidden'
        && style.display !== 'none'
        && style.opacity !== '0';
}
"""

DOM_SCAN_SCRIPT = """
keyword => {
    const kw = keyword.toLowerCase();
    const clickable = el => {
        const tag = el.tagName;
        if (tag === 'BUTTON' || tag === 'A') return true;
        if (tag === 'INPUT') {
            const type = (el.getAttribute('type') || '').toLowerCase();
            return type === 'submit' || type === 'button';
        }
        return false;
    };
    const visible = el => {
        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);
        return rect.width > 0 && rect.height > 0
            && style.visibility !== 'hidden'
            && style.display !== 'none'
            && style.opacity !== '0';
    };
    const mentions = el => {
        const sources = [
            el.textContent,
            el.getAttribute('value'),
            el.onclick ? el.onclick.toString() : el.getAttribute('onclick'),
            el.getAttribute('href'),
        ];
        return sources.some(s => s && s.toLowerCase().includes(kw));
    };
    for (const el of document.querySelectorAll('*')) {
        if (clickable(el) && mentions(el) && visible(el)) {
            return el;
        }
    }
    return null;
}
"""

# Fuerza la carga de contenido diferido antes de reintentar
LAZY_SCROLL_SCRIPT = """
async () => {
    window.scrollTo(0, document.body.scrollHeight);
    await new Promise(r => setTimeout(r, 500));
    window.scrollTo(0, 0);
}
"""

# ============================================================================
# NAVEGADOR
# ============================================================================

BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
    "--window-size=1280,720",
]

DEBUG_SCREENSHOT_NAME = "debug_screenshot.png"
