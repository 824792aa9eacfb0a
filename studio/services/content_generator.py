"""
Content generator: one primary text plus labeled variants per prompt.
"""
import logging
from typing import List, Optional

from studio.config import VARIANT_COUNT
from studio.schemas.job import GenerationOptions
from studio.services.providers import ClaudePrimaryGenerator, CohereVariantGenerator

logger = logging.getLogger(__name__)


def build_system_prompt(kind: str, options: GenerationOptions) -> str:
    """Instructional preamble for the primary generator."""
    return f"""You are an expert AI content creator specializing in {kind} generation.

Your task is to create high-quality, engaging content that converts viewers into customers.

Guidelines:
- Create content that is visually appealing and emotionally engaging
- Focus on storytelling and brand messaging
- Ensure content is optimized for the target platform
- Use persuasive language that drives action
- Include specific visual and audio direction

Content Type: {kind}
Style: {options.style or 'modern'}
Tone: {options.tone or 'professional'}
Target Platform: {options.target_platform or 'social media'}
Aspect Ratio: {options.aspect_ratio or '16:9'}

For videos: Include detailed scene descriptions, camera movements, transitions, and timing
For images: Describe composition, lighting, colors, and visual elements
For ads: Focus on compelling headlines, copy, and call-to-action

Return your response in a structured format that can be used for content generation."""


def build_variant_prompt(primary: str, kind: str, count: int) -> str:
    """Prompt asking the variant generator for alternatives to `primary`."""
    return f"""Based on this {kind} content, generate {count} alternative versions that maintain the same quality but offer different approaches:

Original: {primary}

Generate {count} variants that:
1. Use different visual styles or approaches
2. Target different audience segments
3. Emphasize different product benefits

Format each variant clearly and ensure they are production-ready."""


def combine_content(primary: str, variants: List[str]) -> str:
    labeled = '\n\n'.join(
        f'Variant {index}:\n{variant}' for index, variant in enumerate(variants, start=1)
    )
    return f'PRIMARY VERSION:\n{primary}\n\nALTERNATIVE VERSIONS:\n{labeled}'


class ContentGenerator:
    """
    Chains the primary and variant generators for a single prompt.

    Errors from either provider propagate unchanged. If the primary call
    fails, no variants are requested; if the variant call fails, the
    primary text is discarded.
    """

    def __init__(self, primary=None, variants=None, variant_count: int = VARIANT_COUNT):
        self.primary = primary or ClaudePrimaryGenerator()
        self.variants = variants or CohereVariantGenerator()
        self.variant_count = variant_count

    async def generate(self, prompt: str, kind: str, options: GenerationOptions) -> str:
        system = build_system_prompt(kind, options)
        primary = await self.primary.complete(system, prompt)

        variant_prompt = build_variant_prompt(primary, kind, self.variant_count)
        variants = await self.variants.generate_candidates(variant_prompt, self.variant_count)

        logger.debug('Generated primary text and %d variants for %s prompt', len(variants), kind)
        return combine_content(primary, variants)

    async def aclose(self):
        close = getattr(self.variants, 'aclose', None)
        if close is not None:
            await close()


# Singleton instance
_content_generator: Optional[ContentGenerator] = None


def get_content_generator() -> ContentGenerator:
    """Get the content generator singleton instance."""
    global _content_generator
    if _content_generator is None:
        _content_generator = ContentGenerator()
    return _content_generator


def reset_content_generator():
    """Reset the content generator singleton (for testing)."""
    global _content_generator
    _content_generator = None
