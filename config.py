# config.py

# ---------------- PROJECT ----------------
PROJECT_NAME = "Farmer Advisory"
VERSION = "1.0.0"


# ---------------- ESCALATION: CONFIDENCE ----------------
AI_CONFIDENCE_THRESHOLD = 0.6        # below this → escalate
AI_CONFIDENCE_HIGH_SEVERITY = 0.4    # below this → at least high

IMAGE_CONFIDENCE_THRESHOLD = 0.7


# ---------------- ESCALATION: KEYWORDS ----------------
RISK_KEYWORDS = (
    "dying",
    "dead",
    "emergency",
    "urgent",
    "help",
    "crisis",
    "disaster",
    "pesticide poisoning",
    "chemical burn",
    "crop failure",
    "total loss",
    "spreading fast",
    "entire field",
    "never seen before",
    "getting worse",
    "immediate action",
    "save my crop",
    "losing everything",
)

CRITICAL_KEYWORDS = frozenset({
    "dying",
    "dead",
    "emergency",
    "pesticide poisoning",
    "chemical burn",
    "disaster",
})

# narrower than CRITICAL_KEYWORDS: "chemical burn" and "disaster" do not bump urgency
URGENT_KEYWORDS = frozenset({
    "dying",
    "dead",
    "emergency",
    "pesticide poisoning",
})


# ---------------- EXPERT MATCHING (TUNABLE) ----------------
SPECIALIZATION_WEIGHT = 10
STATE_MATCH_BONUS = 5
DISTRICT_MATCH_BONUS = 5
RATING_MULTIPLIER = 2
EXPERIENCE_DIVISOR = 10
EXPERIENCE_CAP = 10

CATEGORY_SPECIALIZATION_KEYWORDS = {
    "pest": ("pest", "insect", "bug"),
    "disease": ("disease", "fungal", "bacterial", "viral"),
    "crop_failure": ("crop", "yield", "production"),
    "chemical_safety": ("chemical", "safety", "pesticide", "poisoning"),
    "emergency": ("emergency", "crisis", "urgent"),
    "other": (),
}


# ---------------- ADVISOR ----------------
GROUNDED_ANSWER_CONFIDENCE = 0.8
UNGROUNDED_ANSWER_CONFIDENCE = 0.65
FAILED_ANSWER_CONFIDENCE = 0.0

KNOWLEDGE_TOP_K = 5


# ---------------- LLM ----------------
GEMINI_TEXT_MODEL = "models/gemini-flash-latest"
GEMINI_VISION_MODEL = "models/gemini-flash-latest"
LOCAL_MODEL_NAME = "google/flan-t5-base"

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 1200
IMAGE_MAX_TOKENS = 1000


# ---------------- IMAGES ----------------
MIN_IMAGE_AREA = 64 * 64          # smaller than this is not a crop photo
MAX_IMAGE_EDGE = 1600             # longest edge sent to the model
JPEG_QUALITY = 90


# ---------------- VOICE ----------------
MIN_TRANSCRIPT_CONFIDENCE = 0.5
MIN_TRANSCRIPT_WORDS = 2


# ---------------- PROMPTING ----------------
SYSTEM_PROMPT = """
You are an expert agricultural advisor helping farmers with their queries.
Use the provided knowledge base information as your primary reference.
Give practical, step-by-step advice in simple language.
Always mention dosage, timing, and safety precautions for chemical treatments.
Prefer sustainable and organic practices when possible.
For pesticide poisoning, severe crop diseases, or emergencies,
always recommend immediate consultation with agricultural extension officers
or plant protection specialists.
"""

IMAGE_ANALYSIS_PROMPT = """
Analyze this agricultural image for pests, diseases, nutrient deficiencies,
or other crop issues. Provide the primary issue, your confidence (0-1),
the category, a severity assessment, a description of what you observe,
actionable treatment recommendations (organic and conventional), and whether
urgent attention is required. If the plant appears healthy, say so.
"""
