from roadhud.orchestrator.contracts import SafetyLevel

# Spoken prefix per safety level; the model's recommendation follows it
LINE_PREFIX: dict[SafetyLevel, str] = {
    SafetyLevel.DANGER: "Warning. ",
    SafetyLevel.CAUTION: "Caution. ",
    SafetyLevel.SAFE: "",
}


def alert_text(level: SafetyLevel, recommendation: str) -> str:
    return f"{LINE_PREFIX.get(level, '')}{recommendation}"
