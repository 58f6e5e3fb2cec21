"""Recommendation engine: LLM destination recommendations with validation and repair.

Modules:
    config              Centralized limits, placeholders and season windows
    models              Profile, payload, result and failure types
    prompt_builder      Generation and repair prompts
    normalizer          Fence stripping, JSON parsing, tolerant coercion
    schema_validator    Structural checks on the parsed tree
    business_validator  Count, uniqueness, region cap, country and activity rules
    repair              Diagnostic text for the repair prompt
    recommender         Call → validate → repair-once orchestration

Pipeline:
    PromptBuilder → LLMClient → normalize_response → validate_schema
    → validate_business_rules → (repair once) → RecommendationResult
"""
