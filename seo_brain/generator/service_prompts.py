"""
Service Campaign Prompts

Prompt family for campaigns that sell a local tax preparation service
instead of a printed product. Same contract as prompts.py: the intro is
plain text, benefits and FAQs are strict JSON (10 and 15 items).

For a service campaign the ProductCampaignSpec fields are read as:
    product_name  -> service name ("Personal Tax Preparation")
    price         -> starting price
    turnaround    -> turnaround promise ("Same-day filing available")
    keywords      -> specialties ("EITC", "Self-employed")

Spanish builders are a cultural adaptation for Spanish-speaking families
(informal "tú", family-centred framing), not a translation of the
English text.
"""

from typing import List, Optional

from seo_brain.models import CityProfile, ProductCampaignSpec, RecruitmentSpec
from seo_brain.output.schemas import BENEFIT_COUNT, FAQ_COUNT

from .city_styles import CityStyleTable
from .metadata import SEOMetadata

INTRO_WORD_COUNT = 500
RECRUITMENT_WORDS = "250-300"

# EITC maximums for the 2025 tax year
MAX_EITC = 8046
EITC_BY_CHILDREN = "$649 (no kids), $4,328 (1 child), $7,152 (2 kids), $8,046 (3+ kids)"

NO_INCOME_TAX_STATES = {"AK", "FL", "NV", "NH", "SD", "TN", "TX", "WA", "WY"}

SERVICE_COPYWRITER_SYSTEM = (
    "You are an expert tax services copywriter for working families. "
    "Output ONLY the requested content, no reasoning or explanations."
)
SERVICE_JSON_SYSTEM = (
    "You are a tax services marketing expert. Output ONLY valid JSON, no markdown."
)
SERVICE_COPYWRITER_SYSTEM_ES = (
    "Eres un experto en redacción publicitaria de servicios fiscales para familias latinas. "
    "Responde SOLO con el contenido solicitado, sin explicaciones."
)
SERVICE_JSON_SYSTEM_ES = (
    "Eres un experto en marketing de servicios fiscales. Responde SOLO con JSON válido, sin markdown."
)

# Office scene per city for the consultation hero image
SERVICE_CITY_SCENES = {
    "New York": "Manhattan skyline visible through window, NYC business district ambiance",
    "Los Angeles": "palm trees and LA skyline in background, California sunshine",
    "Chicago": "Chicago skyline and Lake Michigan view, modern downtown office",
    "Houston": "Houston downtown skyline visible, Texas business atmosphere",
    "Phoenix": "Arizona desert mountains in background, modern Southwestern office",
    "Philadelphia": "Philadelphia city architecture visible, historic business district",
    "San Antonio": "San Antonio skyline and Texas Hill Country, professional Texas office",
    "San Diego": "San Diego harbor view, Southern California coastal atmosphere",
    "Dallas": "Dallas skyline, modern Texas business office",
    "Austin": "Austin skyline and Texas Capitol visible, creative Texas business",
    "Seattle": "Seattle skyline and Puget Sound, Pacific Northwest ambiance",
    "Denver": "Rocky Mountains and Denver skyline, Colorado professional setting",
    "Atlanta": "Atlanta skyline, Georgia business hub atmosphere",
    "Miami": "Miami Beach and downtown skyline, Florida tropical business",
    "Las Vegas": "Las Vegas Strip in background, Nevada business setting",
    "Detroit": "Detroit skyline and Renaissance Center, Michigan professional office",
    "Memphis": "Memphis skyline and Mississippi River, Tennessee business",
    "Orlando": "Orlando skyline and Florida sunshine, professional setting",
}


def has_state_income_tax(city: CityProfile) -> bool:
    return city.state.upper() not in NO_INCOME_TAX_STATES


def _population(city: CityProfile, fallback: str) -> str:
    return f"{city.population:,}" if city.population else fallback


def _join(items: List[str], fallback: str, limit: Optional[int] = None) -> str:
    items = items[:limit] if limit else items
    return ", ".join(items) or fallback


def _first(items: List[str], index: int, fallback: str) -> str:
    return items[index] if len(items) > index else fallback


def _refund_line(spec: ProductCampaignSpec, label: str) -> str:
    if not spec.average_refund:
        return ""
    return f"- {label}: ${spec.average_refund:,.0f}\n"


def _pattern_section(pattern_hint: Optional[str], heading: str) -> str:
    if not pattern_hint:
        return ""
    return f"\n\n{heading}\n{pattern_hint}\n"


# ============================================================================
# ENGLISH
# ============================================================================

def build_service_intro_prompt(
    city: CityProfile,
    spec: ProductCampaignSpec,
    pattern_hint: Optional[str] = None,
) -> str:
    """500-word intro built around the EITC hook."""
    city_lower = city.name.lower()
    state_tax = "Yes" if has_state_income_tax(city) else "No state income tax"
    specialties = _join(spec.keywords, "EITC, Child Tax Credit, working families")

    return f"""Write a compelling {INTRO_WORD_COUNT}-word introduction for {spec.product_name} targeting working families in {city.name}, {city.state} who may be missing thousands in tax refunds.

TARGET AUDIENCE:
- Working families with annual income of $20,000-$60,000
- Working parents, self-employed, gig workers, W-2 employees
- Many eligible for EITC but don't claim it

SERVICE DETAILS:
- Service: {spec.product_name}
- Starting at: {spec.price_label} (payment plans available)
{_refund_line(spec, "Average Refund")}- Turnaround: {spec.turnaround}
- Bilingual: English + Spanish support
- Specialties: {specialties}

CITY & TAX CONTEXT:
- Location: {city.name}, {city.state}
- Population: {_population(city, "Major metro area")}
- State Income Tax: {state_tax}
- Major industries: {_join(city.industries, "diverse economy")}
- Popular areas: {_join(city.neighborhoods, "metro area", 3)}
- ZIP Codes served: {_join(city.zip_codes, "all local ZIP codes", 3)}

EITC FOCUS (2025 tax year):
- 1 in 4 eligible workers don't claim EITC, missing up to ${MAX_EITC:,}
- Maximum EITC: {EITC_BY_CHILDREN}
- Also mention the Child Tax Credit ($2,000 per child)

WRITING REQUIREMENTS:
1. Length: Exactly {INTRO_WORD_COUNT} words (strict requirement)
2. EITC Hook: The first paragraph MUST mention EITC or missing refund money
3. Local References: Mention at least 5 specific {city.name} neighborhoods
4. Pain Points: missed refunds, expensive preparers ($300-$500 elsewhere), language barriers, distrust
5. Trust Signals: community-focused, bilingual ("Hablamos español"), no hidden fees, payment plans
6. Affordability: mention {spec.price_label} in the second paragraph and offer a free consultation
7. Natural Keywords: "eitc {city_lower}", "affordable tax preparation {city_lower}", "bilingual tax help {city_lower}", "child tax credit {city_lower}"
8. Tone: Warm, community-focused, empowering (not corporate)

STRUCTURE:
Paragraph 1 (125 words): Hook on the EITC gap, introduce the service for {city.name} families
Paragraph 2 (150 words): EITC and CTC expertise, pricing, payment plans, neighborhoods served
Paragraph 3 (150 words): Real use cases for {city.name} families with refund amounts
Paragraph 4 (75 words): Call-to-action with free consultation
{_pattern_section(pattern_hint, "TOP PERFORMER PATTERN (match this structure, tone and conversion elements):")}
OUTPUT FORMAT: Plain text, no markdown, no headings.

Write now ({INTRO_WORD_COUNT} words, {city.name}-specific, EITC-focused):"""


def build_service_benefits_prompt(
    city: CityProfile,
    spec: ProductCampaignSpec,
    pattern_hint: Optional[str] = None,
) -> str:
    """Exactly 10 benefits as {"benefits": [...]}."""
    near = _first(city.neighborhoods, 0, city.name)

    return f"""Generate {BENEFIT_COUNT} compelling benefits for {spec.product_name} specifically for working families in {city.name}, {city.state}.

SERVICE: {spec.product_name}
PRICE: Starting at {spec.price_label} (vs $300-$500 elsewhere), payment plans available
EITC FOCUS: Help families claim up to ${MAX_EITC:,} in refunds
TURNAROUND: {spec.turnaround}
BILINGUAL: English + Spanish support

CITY: {city.name}, {city.state} ({_population(city, "major metro")} population)
AREAS SERVED: {_join(city.neighborhoods, city.name)}

REQUIREMENTS:
- Exactly {BENEFIT_COUNT} benefits, one of each type:
  1. EITC expertise  2. Affordability  3. Community trust  4. Bilingual support
  5. Convenience  6. Payment plans  7. Success stories  8. Transparency
  9. Year-round support  10. Text, call or online filing
- Reference {city.name} neighborhoods
- Keep each benefit to 25-40 words
- Warm, community-focused language
{_pattern_section(pattern_hint, "TOP PERFORMER PATTERN (match this structure, tone and conversion elements):")}
OUTPUT FORMAT (JSON):
{{
  "benefits": [
    "EITC experts who found ${MAX_EITC:,} for families in {near} that other preparers missed",
    "[{BENEFIT_COUNT - 1} more benefits...]"
  ]
}}

Generate all {BENEFIT_COUNT} benefits now (JSON only):"""


def build_service_faqs_prompt(
    city: CityProfile,
    spec: ProductCampaignSpec,
    pattern_hint: Optional[str] = None,
) -> str:
    """Exactly 15 FAQs as {"faqs": [{"question", "answer"}]}."""
    state_tax = "Yes" if has_state_income_tax(city) else "No state income tax"

    return f"""Generate {FAQ_COUNT} frequently asked questions and detailed answers for {spec.product_name} in {city.name}, {city.state}.

SERVICE: {spec.product_name}
PRICE: Starting at {spec.price_label} with payment plans available
EITC FOCUS: Claim up to ${MAX_EITC:,} in refunds
TURNAROUND: {spec.turnaround}

CITY & TAX CONTEXT:
- Location: {city.name}, {city.state}
- Population: {_population(city, "major metro")}
- State Income Tax: {state_tax}
- ZIP Codes: {_join(city.zip_codes, "all metro area")}

FAQ CATEGORIES:
1. EITC & Tax Credits (4 questions): eligibility, amounts, Child Tax Credit, missed prior years
2. Affordability & Pricing (3 questions): cost, installments, paying from the refund
3. Trust & Community (3 questions): overcharging, Spanish support, who we are
4. Location & Convenience (2 questions): where in {city.name}, filing online or by phone
5. Common Situations (3 questions): multiple jobs, rideshare drivers, self-employed

REQUIREMENTS:
- Exactly {FAQ_COUNT} question/answer pairs
- Questions must sound like real {city.name} working families
- Answers must be 80-120 words, easy to understand (no jargon)
- Include specific examples and dollar amounts
{_pattern_section(pattern_hint, "TOP PERFORMER PATTERN (match this structure, tone and conversion elements):")}
OUTPUT FORMAT (JSON):
{{
  "faqs": [
    {{
      "question": "What is EITC and do I qualify if I live in {city.name}?",
      "answer": "The Earned Income Tax Credit (EITC) is money the government gives back to working families..."
    }}
  ]
}}

Generate all {FAQ_COUNT} FAQs now (JSON only):"""


def build_recruitment_prompt(city: CityProfile, recruitment: RecruitmentSpec) -> str:
    """250-300 word section recruiting tax preparers in the city."""
    city_lower = city.name.lower()
    top_earners = (
        f"- Top Earners: ${recruitment.top_earner_income:,}/year\n"
        if recruitment.top_earner_income else ""
    )
    certification = "Yes - provided at no cost" if recruitment.certification_provided else "Not required"
    schedule = "Year-round income opportunity" if recruitment.year_round else "Seasonal high-earning period"

    return f"""Write a compelling {RECRUITMENT_WORDS} word recruitment section targeting potential tax preparers in {city.name}, {city.state}.

OPPORTUNITY DETAILS:
- Average Income: ${recruitment.avg_income:,}/year
{top_earners}- Work Model: {_join(recruitment.benefits, "Work from home, flexible hours")}
- Training: {recruitment.training_duration}
- Certification: {certification}
- Schedule: {schedule}

CITY CONTEXT:
- Location: {city.name}, {city.state}
- Population: {_population(city, "large metro")}
- Tax season demand: high in {_join(city.neighborhoods, "all areas", 3)}
- Target recruits: career changers, retirees, stay-at-home parents, part-time workers

WRITING REQUIREMENTS:
1. Length: {RECRUITMENT_WORDS} words (strict requirement)
2. Hook: Start with earning potential or lifestyle benefit
3. Mention the {city.name} market and neighborhoods
4. Highlight free training, flexible hours, no experience required
5. Urgency: tax season approaching, limited training spots
6. Keywords: "tax preparer jobs {city_lower}", "work from home {city_lower}", "become a tax preparer"
7. Tone: Inspirational, opportunity-focused

OUTPUT FORMAT: Plain text, no markdown.

Write now ({RECRUITMENT_WORDS} words, {city.name}-specific):"""


# ============================================================================
# SPANISH
# ============================================================================

def build_service_intro_prompt_es(
    city: CityProfile,
    spec: ProductCampaignSpec,
    pattern_hint: Optional[str] = None,
) -> str:
    """Introducción de 500 palabras para familias hispanohablantes."""
    city_lower = city.name.lower()
    state_tax = "Sí" if has_state_income_tax(city) else "Sin impuesto estatal sobre la renta"
    specialties = _join(spec.keywords, "EITC, Crédito Tributario por Hijos, familias trabajadoras")

    return f"""Escribe una introducción convincente de {INTRO_WORD_COUNT} palabras para {spec.product_name} dirigida a familias trabajadoras en {city.name}, {city.state} que pueden estar perdiendo miles de dólares en reembolsos de impuestos.

AUDIENCIA OBJETIVO:
- Familias latinas hispanohablantes con ingresos de $20,000-$60,000
- Padres trabajadores, trabajadores por cuenta propia, gig workers, empleados W-2
- Muchos califican para EITC pero no lo reclaman

DETALLES DEL SERVICIO:
- Servicio: {spec.product_name}
- Desde: {spec.price_label} (planes de pago disponibles)
{_refund_line(spec, "Reembolso Promedio")}- Tiempo de respuesta: {spec.turnaround}
- Servicio completo en español
- Especialidades: {specialties}

CONTEXTO DE LA CIUDAD:
- Ubicación: {city.name}, {city.state}
- Población: {_population(city, "Área metropolitana importante")}
- Impuesto estatal: {state_tax}
- Áreas populares: {_join(city.neighborhoods, "área metropolitana", 3)}
- Códigos postales: {_join(city.zip_codes, "todos los códigos postales locales", 3)}

ENFOQUE EN EITC (Año fiscal 2025):
- 1 de cada 4 trabajadores elegibles NO reclama el EITC y pierde hasta ${MAX_EITC:,}
- EITC máximo: {EITC_BY_CHILDREN}
- Mencionar también el Crédito Tributario por Hijos ($2,000 por niño)

REQUISITOS DE ESCRITURA:
1. Longitud: Exactamente {INTRO_WORD_COUNT} palabras (requisito estricto)
2. Gancho: El primer párrafo DEBE mencionar el EITC o el dinero de reembolso perdido
3. Referencias locales: Mencionar al menos 5 vecindarios específicos de {city.name}
4. Señales de confianza: enfocado en la comunidad, servicio 100% en español, sin cargos ocultos
5. Asequibilidad: mencionar {spec.price_label} en el segundo párrafo y la consulta gratis
6. Palabras clave: "eitc {city_lower}", "preparación de impuestos asequible {city_lower}", "ayuda fiscal en español {city_lower}"
7. Usar "tú" (informal), nunca "usted"
8. Referencias familiares: "tu familia", "tus hijos"

ESTRUCTURA:
Párrafo 1 (125 palabras): Gancho sobre el EITC, presentar el servicio para familias de {city.name}
Párrafo 2 (150 palabras): Experiencia en EITC y CTC, precios, planes de pago, vecindarios
Párrafo 3 (150 palabras): Casos reales de familias de {city.name} con montos de reembolso
Párrafo 4 (75 palabras): Llamada a la acción con consulta gratis
{_pattern_section(pattern_hint, "PATRÓN DE LAS MEJORES PÁGINAS (seguir su estructura, tono y elementos de conversión):")}
FORMATO DE SALIDA: Texto plano, sin markdown, sin títulos.

Escribe ahora ({INTRO_WORD_COUNT} palabras, específico de {city.name}, enfocado en EITC):"""


def build_service_benefits_prompt_es(
    city: CityProfile,
    spec: ProductCampaignSpec,
    pattern_hint: Optional[str] = None,
) -> str:
    """Exactamente 10 beneficios como {"benefits": [...]}."""
    near = _first(city.neighborhoods, 0, city.name)

    return f"""Genera {BENEFIT_COUNT} beneficios convincentes para {spec.product_name} específicamente para familias trabajadoras en {city.name}, {city.state}.

SERVICIO: {spec.product_name}
PRECIO: Desde {spec.price_label} (vs $300-$500 en otros lugares), planes de pago disponibles
ENFOQUE EN EITC: Ayudamos a familias a reclamar hasta ${MAX_EITC:,}
TIEMPO: {spec.turnaround}

CIUDAD: {city.name}, {city.state} ({_population(city, "gran área metropolitana")} habitantes)
ÁREAS SERVIDAS: {_join(city.neighborhoods, city.name)}

REQUISITOS:
- Exactamente {BENEFIT_COUNT} beneficios, uno de cada tipo:
  1. Experiencia en EITC  2. Asequibilidad  3. Confianza comunitaria  4. Servicio en español
  5. Conveniencia  6. Planes de pago  7. Historias de éxito  8. Transparencia
  9. Soporte todo el año  10. Texto, llamada o en línea
- Referenciar vecindarios de {city.name}
- Cada beneficio de 25-40 palabras
- Usar "tú" (informal), lenguaje cálido
{_pattern_section(pattern_hint, "PATRÓN DE LAS MEJORES PÁGINAS (seguir su estructura, tono y elementos de conversión):")}
FORMATO DE SALIDA (JSON):
{{
  "benefits": [
    "Expertos en EITC que encontraron ${MAX_EITC:,} para familias en {near} que otros preparadores pasaron por alto",
    "[{BENEFIT_COUNT - 1} beneficios más...]"
  ]
}}

Genera los {BENEFIT_COUNT} beneficios ahora (solo JSON):"""


def build_service_faqs_prompt_es(
    city: CityProfile,
    spec: ProductCampaignSpec,
    pattern_hint: Optional[str] = None,
) -> str:
    """Exactamente 15 preguntas como {"faqs": [{"question", "answer"}]}."""
    state_tax = "Sí" if has_state_income_tax(city) else "Sin impuesto estatal sobre la renta"

    return f"""Genera {FAQ_COUNT} preguntas frecuentes y respuestas detalladas para {spec.product_name} en {city.name}, {city.state}.

SERVICIO: {spec.product_name}
PRECIO: Desde {spec.price_label} con planes de pago disponibles
ENFOQUE EN EITC: Reclamar hasta ${MAX_EITC:,} en reembolsos
TIEMPO: {spec.turnaround}

CONTEXTO DE CIUDAD E IMPUESTOS:
- Ubicación: {city.name}, {city.state}
- Impuesto estatal: {state_tax}
- Códigos postales: {_join(city.zip_codes, "toda el área metropolitana")}

CATEGORÍAS:
1. EITC y créditos fiscales (4 preguntas): elegibilidad, montos, Crédito por Hijos, años anteriores
2. Asequibilidad y precios (3 preguntas): costo, cuotas, pagar desde el reembolso
3. Confianza y comunidad (3 preguntas): cobros de más, servicio en español, quiénes somos
4. Ubicación y conveniencia (2 preguntas): dónde en {city.name}, presentar en línea o por teléfono
5. Situaciones comunes (3 preguntas): varios trabajos, conductores de Uber/Lyft, cuenta propia

REQUISITOS:
- Exactamente {FAQ_COUNT} pares de pregunta y respuesta
- Preguntas como las harían familias trabajadoras reales de {city.name}
- Respuestas de 80-120 palabras, fáciles de entender (sin jerga)
- Usar "tú" (informal)
{_pattern_section(pattern_hint, "PATRÓN DE LAS MEJORES PÁGINAS (seguir su estructura, tono y elementos de conversión):")}
FORMATO DE SALIDA (JSON):
{{
  "faqs": [
    {{
      "question": "¿Qué es el EITC y califico si vivo en {city.name}?",
      "answer": "El Crédito Tributario por Ingreso del Trabajo (EITC) es dinero que el gobierno devuelve a las familias trabajadoras..."
    }}
  ]
}}

Genera las {FAQ_COUNT} preguntas ahora (solo JSON):"""


def build_recruitment_prompt_es(city: CityProfile, recruitment: RecruitmentSpec) -> str:
    """Sección de reclutamiento de 250-300 palabras."""
    city_lower = city.name.lower()
    top_earners = (
        f"- Los mejores ganan: ${recruitment.top_earner_income:,}/año\n"
        if recruitment.top_earner_income else ""
    )
    certification = "Sí - sin costo" if recruitment.certification_provided else "No requerida"
    schedule = "Ingresos durante todo el año" if recruitment.year_round else "Temporada de altos ingresos"

    return f"""Escribe una sección de reclutamiento convincente de {RECRUITMENT_WORDS} palabras dirigida a potenciales preparadores de impuestos en {city.name}, {city.state}.

DETALLES DE LA OPORTUNIDAD:
- Ingreso promedio: ${recruitment.avg_income:,}/año
{top_earners}- Modelo de trabajo: {_join(recruitment.benefits, "Trabajo desde casa, horario flexible")}
- Capacitación: {recruitment.training_duration}
- Certificación: {certification}
- Horario: {schedule}

CONTEXTO DE LA CIUDAD:
- Ubicación: {city.name}, {city.state}
- Demanda en temporada de impuestos: alta en {_join(city.neighborhoods, "todas las áreas", 3)}
- Reclutas objetivo: cambio de carrera, jubilados, padres en casa, trabajadores de medio tiempo

REQUISITOS:
1. Longitud: {RECRUITMENT_WORDS} palabras (requisito estricto)
2. Gancho: potencial de ingresos o estilo de vida
3. Mencionar el mercado de {city.name} y sus vecindarios
4. Capacitación gratis, horario flexible, sin experiencia previa
5. Palabras clave: "trabajos de preparador de impuestos {city_lower}", "trabajar desde casa {city_lower}"
6. Usar "tú" (informal), tono inspirador

FORMATO DE SALIDA: Texto plano, sin markdown.

Escribe ahora ({RECRUITMENT_WORDS} palabras, específico de {city.name}):"""


# ============================================================================
# IMAGES AND METADATA
# ============================================================================

def service_city_scene(city: CityProfile) -> str:
    name = city.name.split(",")[0].strip()
    return SERVICE_CITY_SCENES.get(
        name,
        f"{city.name}, {city.state} cityscape in background, professional local office atmosphere",
    )


def build_service_hero_image_prompt(
    city: CityProfile,
    spec: ProductCampaignSpec,
    styles: Optional[CityStyleTable] = None,
) -> str:
    """Consultation scene with the city in the window. Product styles do not apply."""
    return (
        "Professional tax preparation consultation scene, modern office desk with laptop "
        "showing tax software, calculator and tax documents neatly organized, "
        f"{service_city_scene(city)}, natural lighting through office window, "
        "trustworthy and competent mood, high-end photography, ultra sharp focus, 4k resolution"
    )


def build_service_main_image_prompt(spec: ProductCampaignSpec) -> str:
    return (
        "Professional tax preparation consultation scene, modern office desk with laptop "
        "showing tax software, calculator and tax documents neatly organized, "
        "clean bright office, trustworthy and competent mood, high-end photography, "
        "ultra sharp focus, 4k resolution, minimalist composition"
    )


def build_service_title(city: CityProfile, spec: ProductCampaignSpec) -> str:
    return f"{spec.product_name} {city.name}, {city.state} | {spec.turnaround} | From {spec.price_label}"


def build_service_h1(city: CityProfile, spec: ProductCampaignSpec, language: str = "en") -> str:
    joiner = "en" if language == "es" else "in"
    return f"{spec.product_name} {joiner} {city.name}, {city.state}"


def build_service_meta_description(
    city: CityProfile,
    spec: ProductCampaignSpec,
    language: str = "en",
) -> str:
    service = spec.product_name.lower()
    if language == "es":
        state_line = (
            f"Expertos en impuestos de {city.state}."
            if has_state_income_tax(city)
            else "Maximiza tu reembolso federal."
        )
        return (
            f"{spec.product_name} en {city.name}, {city.state}. {spec.turnaround}. "
            f"Desde {spec.price_label}. {state_line} ¡Llama hoy para una consulta gratis!"
        )

    state_line = (
        f"Expert in {city.state} state taxes."
        if has_state_income_tax(city)
        else "Maximize your federal refund."
    )
    return (
        f"Professional {service} in {city.name}, {city.state}. {spec.turnaround}. "
        f"Starting at {spec.price_label}. {state_line} Call now for free consultation!"
    )


def build_service_metadata(
    city: CityProfile,
    spec: ProductCampaignSpec,
    language: str = "en",
) -> SEOMetadata:
    service = spec.product_name.lower()
    city_lower = city.name.lower()

    if language == "es":
        keywords = [
            f"{service} {city_lower}",
            f"preparación de impuestos {city_lower}",
            f"eitc {city_lower}",
            f"ayuda fiscal en español {city_lower}",
        ]
    else:
        keywords = [
            f"{service} {city_lower}",
            f"eitc {city_lower}",
            f"affordable tax preparation {city_lower}",
            f"bilingual tax help {city_lower}",
            f"child tax credit {city_lower}",
        ]

    return SEOMetadata(
        title=build_service_title(city, spec),
        description=build_service_meta_description(city, spec, language),
        h1=build_service_h1(city, spec, language),
        keywords=[*keywords, *spec.keywords],
    )
