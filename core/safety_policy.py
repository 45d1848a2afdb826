# core/safety_policy.py
KID_SAFE_RULES = [
    "No hate, harassment, bullying, or insults.",
    "No sexual content or romance themes.",
    "No self-harm, gore, weapons, or threats.",
    "No scary horror tone; keep it comforting and positive.",
    "Age-appropriate vocabulary for kids 5-9 years old.",
    "Educational, friendly, optimistic tone.",
]

# Delegated to the service's built-in safety filters.
HARM_CATEGORIES = [
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
]
BLOCK_THRESHOLD = "BLOCK_ONLY_HIGH"


def rules_block() -> str:
    return "\n".join(f"- {r}" for r in KID_SAFE_RULES)
