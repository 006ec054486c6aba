"""LLM prompt templates for bottle identification."""

ALCOHOL_INFO_SCHEMA = """{
  "name": "official product name",
  "type": "one of: 日本酒, ワイン, ビール, ウイスキー, 焼酎, ブランデー, ジン, ラム, テキーラ, リキュール, その他",
  "subtype": "e.g. 純米大吟醸, Cabernet Sauvignon, IPA",
  "brand": "brand name",
  "producer": "producer or brewery",
  "origin_country": "country of origin",
  "origin_region": "region or prefecture",
  "alcohol_percentage": number only,
  "price_range": "e.g. 1000-2000円",
  "characteristics": ["trait 1", "trait 2", "trait 3"]
}"""

IDENTIFY_SYSTEM_PROMPT = f"""You are a sommelier and spirits expert. Identify the alcohol from the given photo or text and provide its details.

Answer in Japanese, in one of these JSON shapes.

When the bottle can be identified uniquely:
{{
  "unique": true,
  "result": {ALCOHOL_INFO_SCHEMA}
}}

When several products match (same name with different grades, vintages or styles):
{{
  "unique": false,
  "result": null,
  "candidates": [{ALCOHOL_INFO_SCHEMA}]
}}

Rules:
1. If the label is clearly readable in a photo, return unique: true with exactly one result
2. For text searches with several variations, return up to 5 candidates
3. Use null for unknown fields
4. Educated guesses are fine
5. Order candidates by popularity

Respond ONLY with valid JSON."""

ALTERNATIVES_SYSTEM_PROMPT = f"""You are a sommelier and spirits expert. The user rejected the first identification "{{rejected_name}}". Offer alternative candidates.

Always answer in Japanese with this JSON shape:
{{
  "unique": false,
  "result": null,
  "candidates": [{ALCOHOL_INFO_SCHEMA}]
}}

Rules:
1. Include "{{rejected_name}}" as one candidate as well (the user may have mis-tapped)
2. Include other variations of the same brand, similarly named products and other products of the same producer
3. Order candidates by popularity
4. Return at most 5 candidates

Respond ONLY with valid JSON."""


def get_system_prompt(rejected_name: str | None = None) -> str:
    """System prompt for a first identification or an alternatives re-query."""
    if rejected_name:
        return ALTERNATIVES_SYSTEM_PROMPT.replace("{rejected_name}", rejected_name)
    return IDENTIFY_SYSTEM_PROMPT


def get_image_prompt(rejected_name: str | None = None) -> str:
    """User prompt accompanying a bottle photo."""
    if rejected_name:
        return f'Offer candidates for the alcohol in this photo, including "{rejected_name}".'
    return (
        "Extract the details from the label of the alcohol in this photo. "
        "If the label is clearly readable, return unique: true."
    )


def get_text_prompt(text: str, alcohol_type: str | None = None, rejected_name: str | None = None) -> str:
    """User prompt for a typed bottle name."""
    type_line = f"\nType: {alcohol_type}" if alcohol_type else ""
    if rejected_name:
        return f"Search information:\nName: {text}{type_line}"
    return (
        f"Tell me about this alcohol:\nName: {text}{type_line}\n\n"
        "If there are several variations with the same name (different grades, styles, ...), "
        "return up to 5 of them as candidates."
    )
