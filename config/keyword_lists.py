"""
Keyword Lists and Pattern Data for Event Scout

This module contains the raw keyword lists and pattern sources used by the
pattern library: spam terms, place names, event vocabulary, category
keywords and pricing words. Kept as plain data so the lists can be reviewed
and versioned separately from the matching code.
"""

KEYWORD_LISTS_VERSION = "2025.03"

# Spam / inappropriate content
SPAM_KEYWORDS = [
    "dm me", "direct message", "pm me", "message me", "facetime",
    "meetup dm", "available for", "escort", "adult", "hookup",
    "dating", "onlyfans", "sugar daddy", "sugar mummy", "sugar baby",
    "forex", "bitcoin profit", "crypto scam", "get rich", "make money fast",
    "investment opportunity", "double your money", "casino", "trading signal",
    "send money", "wire transfer", "paypal", "cashapp", "venmo",
    "zelle", "bank transfer", "earn from home", "passive income", "mlm",
    "pyramid scheme", "airdrop", "free crypto", "pump and dump", "binary options",
    "quick cash", "side hustle", "nude", "porn", "sex",
    "xxx", "18+", "nsfw", "hook up", "one night stand",
    "casual encounter", "massage service", "body rub", "erotic", "sensual",
    "call girl", "prostitute", "booty call", "quick loan", "bad credit",
    "no credit check", "guaranteed approval", "buy followers", "increase likes",
    "hack account", "recover account", "password reset", "cancel anytime",
    "limited time offer", "act now", "urgent", "exclusive deal", "giveaway scam",
    "fake news", "clickbait", "loan app", "betting tips", "sure odds",
    "fixed match", "booking code", "ponzi", "recharge card", "win iphone",
    "follow back", "f4f", "gain followers", "telegram channel", "whatsapp group",
    "aza", "sharp sharp money", "investment plan", "roi daily", "guaranteed profit",
    "crypto signal", "hot girls", "sugar mommy", "spell caster",
    "love spell", "herbal cure", "weight loss pill", "lottery", "jackpot",
]

# Regex sources for suspicious shapes that are not plain keywords
SUSPICIOUS_PATTERNS = [
    r"dm\s+(me|for|to|now|pls|please|quick|fast)",
    r"whatsapp\s*(\+?\d{1,3})?[\s-]*\d{3}[\s-]*\d{3}[\s-]*\d{4}",
    r"(?<!\d)(\+?234|0)[789][01]\d[\s-]?\d{3}[\s-]?\d{4}(?!\d)",   # Nigerian mobile numbers
    r"\$\$\$",
    r"\U0001F4B0{3}",                                            # money bags
    r"\U0001F51E",                                               # no one under eighteen
    r"available\s+for\s+(facetime|meetup|hookups|calls|chats)",
    r"join\s+my\s+(group|channel|telegram|whatsapp)",
    r"click\s+here",
    r"link\s+in\s+bio",
    r"bio\s+link",
    r"(earn|make|get|win)\s+\d+[kK]?\s+(daily|weekly|monthly)",
    r"free\s+(gift|sample|trial|access)",
    r"call\s+now",
    r"text\s+me",
    r"urgent\s+response",
    r"(?-i:\b[A-Z]{2,}(?:\s+[A-Z]{2,}){5,}\b)",                  # all-caps shouting
    r"[!?]{3,}",                                                 # punctuation runs
]

# Locale relevance
LOCALE_SELF_REFERENCES = ["nigeria", "nigerian", "naija"]

PLACE_NAMES = [
    "Lagos", "Abuja", "Port Harcourt", "Kano", "Ibadan", "Benin City",
    "Kaduna", "Enugu", "Jos", "Ilorin", "Aba", "Onitsha", "Warri",
    "Calabar", "Abeokuta", "Akure", "Bauchi", "Maiduguri", "Zaria",
    "Ile-Ife", "Owerri", "Uyo", "Sokoto", "Ogbomosho", "Ife", "Ikeja",
    "Victoria Island", "Lekki", "Yaba", "Surulere", "Ikoyi", "Ajah",
    "Ogudu", "Maryland", "Garki", "Wuse", "Maitama", "Asokoro",
    "Trans Amadi", "GRA", "Rivers State", "Lagos State", "FCT",
    "Asaba", "Awka", "Osogbo", "Makurdi", "Minna", "Lokoja", "Yola",
    "Gombe", "Umuahia", "Yenagoa", "Ado-Ekiti",
]

# Event detection
STRONG_EVENT_KEYWORDS = [
    "conference", "summit", "workshop", "seminar", "hackathon", "meetup",
    "tech event", "startup event", "developer conference", "join us",
    "register now", "save the date", "rsvp", "tickets available",
    "upcoming event", "webinar", "panel discussion", "networking event",
    "launch event", "demo day", "pitch night", "bootcamp", "masterclass",
]

MONTH_NAMES = [
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
]

WEEKDAY_NAMES = [
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
]

# Lines containing one of these are preferred as the event title
TITLE_EVENT_KEYWORDS = ["event", "meetup", "conference", "workshop", "summit", "hackathon"]

# Regex sources; a candidate title matching any of them is rejected
BAD_TITLE_PATTERNS = [
    r"^(dm|call|text|whatsapp|click|link)\b",
    r"available for",
    r"^@\w+$",
    r"^\d+$",
    r"^(rt|retweet|repost)\b",
    r"^http",
    r"emoji\s*only",
]

MAX_TITLE_EMOJI = 2

# More links than this in one post is treated as spam
MAX_SPAM_LINKS = 3

# Category keyword table; order matters, the first category with a hit wins
CATEGORY_KEYWORDS = [
    ("AI", ["ai", "artificial intelligence", "machine learning", "ml", "deep learning",
            "chatgpt", "llm", "neural network"]),
    ("Fintech", ["fintech", "financial", "banking", "payment", "payments", "blockchain",
                 "crypto", "defi", "web3"]),
    ("Startup", ["startup", "startups", "entrepreneur", "founder", "founders", "business",
                 "pitch", "vc", "funding", "accelerator", "incubator"]),
    ("Coding", ["coding", "programming", "developer", "developers", "software", "hackathon",
                "dev", "engineer", "engineers", "code", "api"]),
    ("Hardware", ["hardware", "iot", "robotics", "electronics", "embedded", "arduino",
                  "raspberry pi"]),
    ("Design", ["design", "ui", "ux", "creative", "figma", "product design", "graphic design"]),
    ("Marketing", ["marketing", "growth", "sales", "branding", "seo", "content",
                   "digital marketing", "social media"]),
    ("Cybersecurity", ["cybersecurity", "security", "infosec", "hacking", "privacy",
                       "pen test", "ethical hacking"]),
    ("Virtual", ["virtual", "online", "remote", "webinar", "zoom", "virtual event",
                 "live stream"]),
    ("HealthTech", ["healthtech", "medtech", "healthcare", "telemedicine", "ehealth"]),
    ("EdTech", ["edtech", "education", "learning", "elearning", "online course"]),
    ("AgriTech", ["agritech", "agriculture", "farming", "agribusiness"]),
]

# Pricing
FREE_KEYWORDS = [
    "free", "no cost", "complimentary", "free admission", "free entry", "free event",
    "free registration", "zero cost", "open to all", "no ticket required", "gratis",
]

PAID_KEYWORDS = [
    "ticket", "tickets", "buy", "purchase", "fee", "fees", "paid",
    "register and pay", "entrance fee",
]

# Links to these hosts point back at the platform, not at the event
PLATFORM_HOSTS = ["twitter.com", "x.com", "t.co"]

EVENT_HASHTAGS = ["#NigeriaEvents", "#TechNigeria"]
