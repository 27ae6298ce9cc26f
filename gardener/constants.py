GARDEN_POOLS = {
    0: 'wJEWEL-xJEWEL',
    1: 'CRYSTAL-AVAX',
    2: 'CRYSTAL-wJEWEL',
    3: 'CRYSTAL-USDC',
    4: 'ETH-USDC',
    5: 'wJEWEL-USDC',
    6: 'CRYSTAL-ETH',
    7: 'CRYSTAL-BTC.b',
    8: 'CRYSTAL-KLAY',
    9: 'wJEWEL-KLAY',
    10: 'wJEWEL-AVAX',
    11: 'wJEWEL-BTC.b',
    12: 'wJEWEL-ETH',
    13: 'BTC.b-USDC',
}

# hero factor
BASE_HERO_FACTOR = 0.1
STAT_DIVISOR = 1222.22
SKILL_DIVISOR = 244.44
SKILL_SCALE = 10
GENE_SCORE_MULTIPLIER = 1.2

# reward divisor: (300 - 50 * geneBonus) * rewardModBase
DIVISOR_BASE = 300
DIVISOR_GENE_DISCOUNT = 50
REWARD_MOD_BASE_SKILLED = 72
REWARD_MOD_BASE_UNSKILLED = 144
REWARD_MOD_SKILL_THRESHOLD = 10

# stamina
SECONDS_PER_DAY = 86_400
MINUTES_PER_DAY = 1_440
BASE_REGEN_SECONDS = 20 * 60
MIN_REGEN_SECONDS = 5 * 60
FAST_REGEN_SECONDS_PER_LEVEL = 3
QUEST_MINUTES_PER_STAMINA = 12
QUEST_MINUTES_PER_STAMINA_GENE = 10

# attempts search
MIN_ATTEMPTS = 10
MAX_ATTEMPTS = 35
DEFAULT_ATTEMPTS = 25

# pets
GARDENING_EGG_TYPE = 2
POWER_SURGE_IDS = (90, 170)
SKILLED_GREENSKEEPER_IDS = (7, 86, 166)

# allocation
PAIRS_PER_POOL = 3
REFERENCE_LP_SHARE = 0.0001

# pairing
GARDENING_QUEST_ADDRESS = '0x6ff019415ee105acf2ac52483a33f5b43eadb8d0'
EXPEDITION_GARDENING_LEVEL = 10
HERO_ID_REALM_PREFIXES = (2_000_000_000_000, 1_000_000_000_000)
QUEST_CODE_EXPEDITION = 0x05
QUEST_CODE_TRAINING = 0x06
PROFESSION_CODE_GARDENING = 0x0a
PROFESSION_CODE_FORAGING = 0x02
PROFESSION_CODE_FISHING = 0x03
PROFESSION_CODE_MINING = 0x01
EMPTY_QUEST = '0x0000000000000000000000000000000000000000'
GARDEN_QUEST_TYPES = range(1, 14)
