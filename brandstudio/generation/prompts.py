"""
Prompt Templates
================

Fixed instruction text sent to the generative service. The studio serves a
Brazilian confectionery brand, so model-facing text is in Portuguese.
"""


# =============================================================================
# VISUAL DNA
# =============================================================================

DNA_ANALYSIS_PROMPT = """Analise esta imagem de referência e extraia o seu "DNA Visual".
Retorne um JSON estritamente com:
- colors: lista de cores hexadecimais (até 5) predominantes.
- typography: descrição das fontes.
- elements: elementos gráficos (sombras, texturas, ícones).
- description: resumo da narrativa visual."""


# =============================================================================
# ART GENERATION
# =============================================================================

ART_HEADER = "Crie uma arte de CONFEITARIA DE LUXO."

DNA_BLOCK_TEMPLATE = """--- DNA VISUAL ---
Cores: {colors}
Estilo: {description}"""

IMPACT_DIRECTIVE = """--- MODO IMPACTO ATIVADO ---
Setas 3D, badges vibrantes, tipografia pesada."""

WATERMARK_INCLUDE_TEMPLATE = "ADICIONE discretamente a marca d'água \"{text}\"."
WATERMARK_EXCLUDE = "NÃO adicione marca d'água."

LANGUAGE_RULE = "Apenas português real."


# =============================================================================
# CAPTION
# =============================================================================

CAPTION_PROMPT_TEMPLATE = 'Escreva uma legenda curta e irresistível para o post: "{prompt}".'


def watermark_directive(include: bool, text: str) -> str:
    """Exactly one of the include / exclude directives."""
    if include:
        return WATERMARK_INCLUDE_TEMPLATE.format(text=text)
    return WATERMARK_EXCLUDE
