"""Configuration constants for the analysis pipeline."""

# Document identifiers produced by the ingestion connectors for comments/replies
REPLY_ID_PREFIXES: tuple[str, ...] = ("comment-", "reply-")

# Output bounds
MAX_KEYWORD_FREQUENCY_ENTRIES = 100

NARRATIVE_PLACEHOLDER = "Narrative unavailable. This analysis was computed locally from the collected posts."

# Devanagari block, used for script detection
DEVANAGARI_PATTERN = "[\u0900-\u097F]"

# Latin letters plus Devanagari letters and marks; Devanagari danda (U+0964-0965)
# and digits (U+0966-096F) are excluded so punctuation and numbers never count.
TOKEN_PATTERN = "[a-z\u0900-\u0963\u0970-\u097F]+"

# Hindi and Marathi sentiment lexicon. Local classification cannot tell the two
# languages apart, so both share one word list.
DEVANAGARI_POSITIVE_WORDS: frozenset[str] = frozenset({
    # Hindi
    "अच्छा", "अच्छी", "अच्छे", "बढ़िया", "शानदार", "बेहतरीन", "खुश", "ख़ुश", "प्यार",
    "सुंदर", "मज़ेदार", "मजेदार", "जीत", "सफल", "सफलता", "धन्यवाद", "शुक्रिया",
    "उत्तम", "महान", "पसंद", "वाह", "जबरदस्त", "ज़बरदस्त", "सही", "बधाई",
    # Marathi
    "छान", "चांगला", "चांगली", "चांगले", "आनंद", "आवडले", "आवडला",
    "मस्त", "भारी", "अभिनंदन", "यश", "उत्कृष्ट",
})

DEVANAGARI_NEGATIVE_WORDS: frozenset[str] = frozenset({
    # Hindi
    "बुरा", "बुरी", "बुरे", "खराब", "ख़राब", "बेकार", "घटिया", "दुखी", "दुख", "नफरत",
    "नफ़रत", "गुस्सा", "हार", "असफल", "भ्रष्ट", "भ्रष्टाचार", "धोखा", "झूठ",
    "शर्म", "शर्मनाक", "बकवास", "गलत", "ग़लत", "समस्या",
    # Marathi
    "वाईट", "दुःख", "राग", "फसवणूक", "लाज", "चूक", "त्रास",
    "निराशा", "भिकार",
})

# Negators follow the word they negate in Hindi and Marathi word order
DEVANAGARI_NEGATORS: frozenset[str] = frozenset({"नहीं", "नही", "नाही", "ना", "मत"})
