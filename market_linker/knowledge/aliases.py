from __future__ import annotations

from typing import Dict, List

# canonical id -> lowercase aliases. The canonical id itself (lowercased, underscores as
# spaces) is always registered as an alias too.

ESPORTS_CS2_TEAMS: Dict[str, List[str]] = {
    "TEAM_VITALITY": ["vitality", "team vitality", "vit", "t.vitality", "vita"],
    "TEAM_FALCONS": ["falcons", "team falcons", "fal", "t.falcons", "the falcons"],
    "NAVI": ["navi", "natus vincere", "na'vi", "natus"],
    "G2_ESPORTS": ["g2", "g2 esports", "g2.esports", "g2esports"],
    "FAZE_CLAN": ["faze", "faze clan", "fazeclan"],
    "TEAM_SPIRIT": ["spirit", "team spirit"],
    "MOUZ": ["mouz", "mousesports"],
    "HEROIC": ["heroic", "heroic gg"],
    "COMPLEXITY": ["complexity", "complexity gaming"],
    "CLOUD9": ["cloud9", "c9", "cloud 9"],
    "FNATIC": ["fnatic", "fnc"],
    "ASTRALIS": ["astralis"],
    "NINJAS_IN_PYJAMAS": ["nip", "ninjas in pyjamas"],
    "ENCE": ["ence", "ence esports"],
    "VIRTUS_PRO": ["virtus pro", "virtus.pro", "virtuspro"],
    "ETERNAL_FIRE": ["eternal fire", "eternalfire"],
    "TEAM_LIQUID": ["liquid", "team liquid"],
    "THE_MONGOLZ": ["the mongolz", "mongolz"],
    "FLYQUEST": ["flyquest"],
    "BETBOOM": ["betboom", "betboom team"],
    "GAMERLEGION": ["gamerlegion", "gamer legion"],
    "3DMAX": ["3dmax", "3d max"],
}

ESPORTS_VALORANT_TEAMS: Dict[str, List[str]] = {
    "SENTINELS": ["sentinels"],
    "LOUD": ["loud", "loud gg"],
    "DRX": ["drx", "drx valorant"],
    "PAPER_REX": ["paper rex", "prx", "paperrex"],
    "GEN_G": ["gen.g", "geng", "gen g"],
    "EVIL_GENIUSES": ["evil geniuses"],
    "NRG": ["nrg", "nrg esports"],
    "100_THIEVES": ["100 thieves", "100t", "100thieves"],
    "KARMINE_CORP": ["karmine corp", "karmine"],
    "TEAM_HERETICS": ["team heretics", "heretics"],
}

ESPORTS_LOL_TEAMS: Dict[str, List[str]] = {
    "T1": ["t1", "sk telecom", "skt", "sk telecom t1"],
    "HANWHA_LIFE": ["hanwha", "hanwha life", "hle"],
    "KT_ROLSTER": ["kt rolster"],
    "DPLUS_KIA": ["dplus", "dplus kia", "damwon"],
    "JDG": ["jd gaming", "jdg"],
    "TOP_ESPORTS": ["top esports", "tes"],
    "BILIBILI_GAMING": ["bilibili gaming", "blg"],
    "WEIBO_GAMING": ["weibo gaming", "wbg"],
    "MAD_LIONS": ["mad lions"],
    "TEAM_BDS": ["team bds", "bds"],
}

ESPORTS_DOTA_TEAMS: Dict[str, List[str]] = {
    "GAIMIN_GLADIATORS": ["gaimin", "gaimin gladiators"],
    "TUNDRA_ESPORTS": ["tundra", "tundra esports"],
    "OG": ["og", "og dota"],
    "XTREME_GAMING": ["xtreme gaming"],
    "AZURE_RAY": ["azure ray"],
    "BEASTCOAST": ["beastcoast"],
}

UFC_FIGHTERS: Dict[str, List[str]] = {
    "ISLAM_MAKHACHEV": ["makhachev", "islam makhachev"],
    "JON_JONES": ["jon jones", "bones jones"],
    "ALEX_PEREIRA": ["alex pereira", "pereira", "poatan"],
    "LEON_EDWARDS": ["leon edwards"],
    "ILIA_TOPURIA": ["ilia topuria", "topuria"],
    "DRICUS_DU_PLESSIS": ["dricus", "du plessis"],
    "TOM_ASPINALL": ["tom aspinall", "aspinall"],
    "MAX_HOLLOWAY": ["max holloway", "holloway"],
    "SEAN_STRICKLAND": ["sean strickland", "strickland"],
    "BELAL_MUHAMMAD": ["belal", "belal muhammad"],
    "MERAB_DVALISHVILI": ["merab", "dvalishvili"],
    "ALEXANDER_VOLKANOVSKI": ["volkanovski", "volk"],
    "CHARLES_OLIVEIRA": ["charles oliveira", "oliveira"],
    "DUSTIN_POIRIER": ["dustin poirier", "poirier"],
    "CONOR_MCGREGOR": ["mcgregor", "conor mcgregor"],
    "SEAN_OMALLEY": ["sean o'malley", "omalley", "o'malley"],
    "JIRI_PROCHAZKA": ["prochazka", "jiri prochazka"],
    "MAGOMED_ANKALAEV": ["ankalaev", "magomed ankalaev"],
    "ISRAEL_ADESANYA": ["israel adesanya", "adesanya", "stylebender"],
}

TENNIS_PLAYERS: Dict[str, List[str]] = {
    "JANNIK_SINNER": ["sinner", "jannik sinner"],
    "CARLOS_ALCARAZ": ["alcaraz", "carlos alcaraz"],
    "NOVAK_DJOKOVIC": ["djokovic", "novak djokovic", "nole"],
    "DANIIL_MEDVEDEV": ["medvedev", "daniil medvedev"],
    "ALEXANDER_ZVEREV": ["zverev", "alexander zverev"],
    "ANDREY_RUBLEV": ["rublev", "andrey rublev"],
    "CASPER_RUUD": ["ruud", "casper ruud"],
    "TAYLOR_FRITZ": ["fritz", "taylor fritz"],
    "STEFANOS_TSITSIPAS": ["tsitsipas", "stefanos tsitsipas"],
    "ALEX_DE_MINAUR": ["de minaur", "alex de minaur"],
    "BEN_SHELTON": ["shelton", "ben shelton"],
    "HOLGER_RUNE": ["holger rune"],
    "JACK_DRAPER": ["draper", "jack draper"],
    "IGA_SWIATEK": ["swiatek", "iga swiatek"],
    "ARYNA_SABALENKA": ["sabalenka", "aryna sabalenka"],
    "COCO_GAUFF": ["gauff", "coco gauff"],
    "ELENA_RYBAKINA": ["rybakina", "elena rybakina"],
    "JESSICA_PEGULA": ["pegula", "jessica pegula"],
    "QINWEN_ZHENG": ["qinwen zheng", "zheng qinwen"],
    "MIRRA_ANDREEVA": ["andreeva", "mirra andreeva"],
}

SOCCER_TEAMS: Dict[str, List[str]] = {
    "BENFICA": ["benfica", "sl benfica"],
    "PORTO": ["fc porto"],
    "SPORTING_CP": ["sporting cp", "sporting lisbon"],
    "CELTIC": ["celtic", "celtic fc"],
    "RANGERS_FC": ["rangers fc", "glasgow rangers"],
    "GALATASARAY": ["galatasaray"],
    "FENERBAHCE": ["fenerbahce"],
    "BESIKTAS": ["besiktas"],
    "AJAX": ["ajax", "afc ajax"],
    "PSV": ["psv", "psv eindhoven"],
    "FEYENOORD": ["feyenoord"],
    "CLUB_BRUGGE": ["club brugge", "brugge"],
    "ANDERLECHT": ["anderlecht"],
    "LEEDS_UNITED": ["leeds", "leeds united"],
    "SUNDERLAND": ["sunderland"],
    "BURNLEY": ["burnley"],
    "PSG": ["psg", "paris saint-germain", "paris sg"],
    "MARSEILLE": ["marseille", "olympique marseille"],
    "MONACO": ["monaco", "as monaco"],
    "LYON": ["lyon", "olympique lyonnais"],
    "LILLE": ["lille", "losc"],
    "ARSENAL": ["arsenal", "arsenal fc"],
    "CHELSEA": ["chelsea", "chelsea fc"],
    "LIVERPOOL": ["liverpool", "liverpool fc"],
    "MANCHESTER_CITY": ["man city", "manchester city"],
    "MANCHESTER_UNITED": ["man utd", "man united", "manchester united"],
    "TOTTENHAM": ["tottenham", "spurs", "tottenham hotspur"],
    "REAL_MADRID": ["real madrid"],
    "BARCELONA": ["barcelona", "barca"],
    "ATLETICO_MADRID": ["atletico madrid", "atletico"],
    "BAYERN_MUNICH": ["bayern", "bayern munich", "fc bayern"],
    "BORUSSIA_DORTMUND": ["dortmund", "borussia dortmund", "bvb"],
    "INTER_MILAN": ["inter milan", "internazionale"],
    "AC_MILAN": ["ac milan"],
    "JUVENTUS": ["juventus", "juve"],
    "NAPOLI": ["napoli", "ssc napoli"],
}

MLB_TEAMS: Dict[str, List[str]] = {
    "NEW_YORK_YANKEES": ["yankees", "ny yankees", "nyy"],
    "LOS_ANGELES_DODGERS": ["dodgers", "la dodgers", "lad"],
    "BOSTON_RED_SOX": ["red sox"],
    "CHICAGO_CUBS": ["cubs", "chicago cubs"],
    "NEW_YORK_METS": ["mets", "ny mets"],
    "ATLANTA_BRAVES": ["braves", "atlanta braves"],
    "HOUSTON_ASTROS": ["astros", "houston astros"],
    "PHILADELPHIA_PHILLIES": ["phillies"],
    "SAN_DIEGO_PADRES": ["padres", "san diego padres"],
    "SEATTLE_MARINERS": ["mariners", "seattle mariners"],
    "TORONTO_BLUE_JAYS": ["blue jays", "toronto blue jays"],
    "BALTIMORE_ORIOLES": ["orioles", "baltimore orioles"],
    "CHICAGO_WHITE_SOX": ["white sox"],
    "TEXAS_RANGERS": ["texas rangers"],
    "MILWAUKEE_BREWERS": ["brewers", "milwaukee brewers"],
    "ST_LOUIS_CARDINALS": ["st louis cardinals"],
    "SAN_FRANCISCO_GIANTS": ["sf giants", "san francisco giants"],
}

GOLF_PLAYERS: Dict[str, List[str]] = {
    "SCOTTIE_SCHEFFLER": ["scheffler", "scottie scheffler"],
    "RORY_MCILROY": ["mcilroy", "rory mcilroy"],
    "JON_RAHM": ["rahm", "jon rahm"],
    "XANDER_SCHAUFFELE": ["schauffele", "xander schauffele"],
    "VIKTOR_HOVLAND": ["hovland", "viktor hovland"],
    "COLLIN_MORIKAWA": ["morikawa", "collin morikawa"],
    "BROOKS_KOEPKA": ["koepka", "brooks koepka"],
    "BRYSON_DECHAMBEAU": ["dechambeau", "bryson dechambeau"],
    "JORDAN_SPIETH": ["spieth", "jordan spieth"],
    "HIDEKI_MATSUYAMA": ["matsuyama", "hideki matsuyama"],
    "TIGER_WOODS": ["tiger woods"],
    "LUDVIG_ABERG": ["aberg", "ludvig aberg"],
}

F1_ENTRANTS: Dict[str, List[str]] = {
    "MAX_VERSTAPPEN": ["verstappen", "max verstappen"],
    "LEWIS_HAMILTON": ["hamilton", "lewis hamilton"],
    "CHARLES_LECLERC": ["leclerc", "charles leclerc"],
    "LANDO_NORRIS": ["norris", "lando norris"],
    "CARLOS_SAINZ": ["sainz", "carlos sainz"],
    "GEORGE_RUSSELL": ["george russell"],
    "OSCAR_PIASTRI": ["piastri", "oscar piastri"],
    "FERNANDO_ALONSO": ["alonso", "fernando alonso"],
    "RED_BULL_RACING": ["red bull", "red bull racing", "rbr"],
    "MERCEDES_F1": ["mercedes", "mercedes amg"],
    "FERRARI": ["ferrari", "scuderia ferrari"],
    "MCLAREN": ["mclaren", "mclaren f1"],
    "ASTON_MARTIN": ["aston martin"],
    "HAAS": ["haas", "haas f1"],
}

US_POLITICIANS: Dict[str, List[str]] = {
    "DONALD_TRUMP": ["trump", "donald trump", "donald j trump", "djt"],
    "JOE_BIDEN": ["biden", "joe biden", "president biden"],
    "BARACK_OBAMA": ["obama", "barack obama"],
    "KAMALA_HARRIS": ["kamala", "harris", "kamala harris"],
    "JD_VANCE": ["jd vance", "vance", "j.d. vance"],
    "MIKE_PENCE": ["pence", "mike pence"],
    "ELON_MUSK": ["musk", "elon musk", "elon"],
    "MARCO_RUBIO": ["rubio", "marco rubio"],
    "PETE_HEGSETH": ["hegseth", "pete hegseth"],
    "RFK_JR": ["rfk", "rfk jr", "robert f kennedy"],
    "GAVIN_NEWSOM": ["newsom", "gavin newsom"],
    "RON_DESANTIS": ["desantis", "ron desantis"],
    "AOC": ["aoc", "alexandria ocasio-cortez", "ocasio-cortez"],
    "CHUCK_SCHUMER": ["schumer", "chuck schumer"],
    "MIKE_JOHNSON": ["mike johnson", "speaker johnson"],
    "NANCY_PELOSI": ["pelosi", "nancy pelosi"],
}

INTERNATIONAL_POLITICIANS: Dict[str, List[str]] = {
    "VLADIMIR_PUTIN": ["putin", "vladimir putin"],
    "VOLODYMYR_ZELENSKY": ["zelensky", "zelenskyy", "volodymyr zelensky"],
    "XI_JINPING": ["xi jinping", "president xi"],
    "BENJAMIN_NETANYAHU": ["netanyahu", "bibi", "benjamin netanyahu"],
    "KEIR_STARMER": ["starmer", "keir starmer"],
    "EMMANUEL_MACRON": ["macron", "emmanuel macron"],
    "MARINE_LE_PEN": ["le pen", "marine le pen"],
    "FRIEDRICH_MERZ": ["merz", "friedrich merz"],
    "JUSTIN_TRUDEAU": ["trudeau", "justin trudeau"],
    "MARK_CARNEY": ["carney", "mark carney"],
    "NARENDRA_MODI": ["modi", "narendra modi"],
    "JAVIER_MILEI": ["milei", "javier milei"],
    "KIM_JONG_UN": ["kim jong un", "kim jong-un"],
    "ALI_KHAMENEI": ["khamenei", "ali khamenei"],
}

TECH_EXECUTIVES: Dict[str, List[str]] = {
    "JEFF_BEZOS": ["bezos", "jeff bezos"],
    "MARK_ZUCKERBERG": ["zuckerberg", "zuck", "mark zuckerberg"],
    "TIM_COOK": ["tim cook"],
    "SATYA_NADELLA": ["nadella", "satya nadella"],
    "SUNDAR_PICHAI": ["pichai", "sundar pichai"],
    "SAM_ALTMAN": ["sam altman", "altman"],
    "JENSEN_HUANG": ["jensen huang"],
    "WARREN_BUFFETT": ["buffett", "warren buffett"],
    "MICHAEL_SAYLOR": ["saylor", "michael saylor"],
    "VITALIK_BUTERIN": ["vitalik", "vitalik buterin", "buterin"],
}

CENTRAL_BANKERS: Dict[str, List[str]] = {
    "JEROME_POWELL": ["powell", "jerome powell", "fed chair powell", "chair powell"],
    "CHRISTINE_LAGARDE": ["lagarde", "christine lagarde"],
    "ANDREW_BAILEY": ["andrew bailey", "governor bailey"],
    "KAZUO_UEDA": ["ueda", "kazuo ueda"],
    "TIFF_MACKLEM": ["macklem", "tiff macklem"],
}

CELEBRITIES: Dict[str, List[str]] = {
    "TAYLOR_SWIFT": ["taylor swift"],
    "BEYONCE": ["beyonce"],
    "DRAKE": ["drake"],
    "KENDRICK_LAMAR": ["kendrick", "kendrick lamar"],
    "KANYE_WEST": ["kanye", "kanye west"],
    "BAD_BUNNY": ["bad bunny"],
    "THE_WEEKND": ["the weeknd", "weeknd"],
    "BILLIE_EILISH": ["billie eilish"],
    "RIHANNA": ["rihanna"],
    "SABRINA_CARPENTER": ["sabrina carpenter"],
    "MRBEAST": ["mrbeast", "mr beast"],
}

CENTRAL_BANKS: Dict[str, List[str]] = {
    "FED": ["fed", "federal reserve", "fomc", "the fed", "us fed", "federal reserve board"],
    "ECB": ["ecb", "european central bank"],
    "BOE": ["boe", "bank of england"],
    "BOJ": ["boj", "bank of japan"],
    "PBOC": ["pboc", "people's bank of china", "peoples bank of china"],
    "RBA": ["rba", "reserve bank of australia"],
    "BOC": ["boc", "bank of canada"],
    "SNB": ["snb", "swiss national bank"],
    "RBNZ": ["rbnz", "reserve bank of new zealand"],
}

SPORTS_LEAGUES: Dict[str, List[str]] = {
    "NBA": ["nba", "national basketball association"],
    "NFL": ["nfl", "national football league"],
    "MLB": ["mlb", "major league baseball"],
    "NHL": ["nhl", "national hockey league"],
    "MLS": ["mls", "major league soccer"],
    "NCAA_BASKETBALL": ["ncaa basketball", "march madness", "college basketball", "ncaab"],
    "NCAA_FOOTBALL": ["ncaa football", "college football", "cfb", "cfp"],
    "EPL": ["epl", "premier league", "english premier league"],
    "LA_LIGA": ["la liga", "laliga"],
    "BUNDESLIGA": ["bundesliga"],
    "SERIE_A": ["serie a"],
    "LIGUE_1": ["ligue 1", "ligue1"],
    "UCL": ["ucl", "champions league", "uefa champions league"],
    "UEL": ["uel", "europa league", "uefa europa league"],
    "WORLD_CUP": ["world cup", "fifa world cup"],
    "UFC": ["ufc", "ultimate fighting championship", "mma"],
    "BELLATOR": ["bellator"],
    "F1": ["f1", "formula 1", "formula one", "formula1"],
    "NASCAR": ["nascar"],
    "ATP": ["atp", "atp tour"],
    "WTA": ["wta", "wta tour"],
    "GRAND_SLAM": ["grand slam"],
    "WIMBLEDON": ["wimbledon"],
    "US_OPEN_TENNIS": ["us open tennis", "us open"],
    "AUSTRALIAN_OPEN": ["australian open", "aus open"],
    "FRENCH_OPEN": ["french open", "roland garros"],
    "PGA": ["pga", "pga tour"],
    "LPGA": ["lpga", "lpga tour"],
    "MASTERS_TOURNAMENT": ["the masters", "masters tournament", "masters"],
    "RYDER_CUP": ["ryder cup"],
    "LCS": ["lcs"],
    "LEC": ["lec"],
    "LCK": ["lck"],
    "LPL": ["lpl"],
    "VCT": ["vct", "valorant champions tour"],
    "BLAST": ["blast premier"],
    "ESL": ["esl", "esl pro league"],
    "IEM": ["iem", "intel extreme masters"],
    "THE_INTERNATIONAL": ["the international"],
    "OLYMPICS": ["olympics", "olympic games"],
}

TECH_COMPANIES: Dict[str, List[str]] = {
    "APPLE": ["apple", "aapl"],
    "GOOGLE": ["google", "alphabet", "googl"],
    "MICROSOFT": ["microsoft", "msft"],
    "AMAZON": ["amazon", "amzn"],
    "META": ["meta", "facebook"],
    "NVIDIA": ["nvidia", "nvda"],
    "TESLA": ["tesla", "tsla"],
    "NETFLIX": ["netflix", "nflx"],
    "OPENAI": ["openai", "open ai"],
    "ANTHROPIC": ["anthropic"],
    "TWITTER": ["twitter"],
    "TIKTOK": ["tiktok", "bytedance"],
    "COINBASE": ["coinbase"],
    "BINANCE": ["binance", "bnb"],
    "SPACEX": ["spacex", "space x"],
    "PALANTIR": ["palantir", "pltr"],
}

FINANCIAL_INSTITUTIONS: Dict[str, List[str]] = {
    "JPMORGAN": ["jpmorgan", "jp morgan", "jpm"],
    "GOLDMAN_SACHS": ["goldman", "goldman sachs"],
    "MORGAN_STANLEY": ["morgan stanley"],
    "BLACKROCK": ["blackrock"],
    "BERKSHIRE": ["berkshire", "berkshire hathaway"],
    "GRAYSCALE": ["grayscale", "gbtc"],
    "MICROSTRATEGY": ["microstrategy", "mstr"],
}

GOVERNMENT_AGENCIES: Dict[str, List[str]] = {
    "SEC": ["sec", "securities and exchange commission"],
    "CFTC": ["cftc"],
    "DOJ": ["doj", "department of justice", "justice department"],
    "FBI": ["fbi"],
    "FDA": ["fda"],
    "CDC": ["cdc"],
    "TREASURY": ["us treasury", "treasury department"],
    "PENTAGON": ["pentagon", "department of defense"],
    "NASA": ["nasa"],
    "CONGRESS": ["congress", "us congress"],
    "SENATE": ["senate", "us senate"],
    "HOUSE_OF_REPRESENTATIVES": ["house of representatives", "us house"],
    "SCOTUS": ["scotus", "supreme court"],
    "UNITED_NATIONS": ["united nations"],
    "NATO": ["nato"],
    "EUROPEAN_UNION": ["european union"],
    "IMF": ["imf", "international monetary fund"],
    "WORLD_HEALTH_ORGANIZATION": ["world health organization"],
    "OPEC": ["opec"],
}

CRYPTO_PROJECTS: Dict[str, List[str]] = {
    "BITCOIN": ["bitcoin", "btc"],
    "ETHEREUM": ["ethereum", "eth", "ether"],
    "SOLANA": ["solana", "sol"],
    "XRP": ["xrp", "ripple"],
    "CARDANO": ["cardano", "ada"],
    "DOGECOIN": ["dogecoin", "doge"],
    "AVALANCHE": ["avalanche", "avax"],
    "POLKADOT": ["polkadot"],
    "CHAINLINK": ["chainlink"],
    "LITECOIN": ["litecoin", "ltc"],
    "SUI": ["sui"],
    "TONCOIN": ["toncoin"],
    "TRON": ["tron", "trx"],
    "SHIBA_INU": ["shiba", "shib", "shiba inu"],
    "PEPE": ["pepe", "pepe coin"],
    "HYPERLIQUID": ["hyperliquid", "hype"],
}

MEDIA_ORGANIZATIONS: Dict[str, List[str]] = {
    "CNN": ["cnn"],
    "FOX_NEWS": ["fox news", "foxnews"],
    "MSNBC": ["msnbc"],
    "NYT": ["nyt", "new york times"],
    "WSJ": ["wsj", "wall street journal"],
    "REUTERS": ["reuters"],
    "BLOOMBERG": ["bloomberg"],
    "CNBC": ["cnbc"],
    "BBC": ["bbc"],
    "ESPN": ["espn"],
}

ESPORTS_TEAM_GROUPS: Dict[str, Dict[str, List[str]]] = {
    "CS2": ESPORTS_CS2_TEAMS,
    "VALORANT": ESPORTS_VALORANT_TEAMS,
    "LOL": ESPORTS_LOL_TEAMS,
    "DOTA2": ESPORTS_DOTA_TEAMS,
}

TEAM_TABLES: List[Dict[str, List[str]]] = [
    ESPORTS_CS2_TEAMS,
    ESPORTS_VALORANT_TEAMS,
    ESPORTS_LOL_TEAMS,
    ESPORTS_DOTA_TEAMS,
    UFC_FIGHTERS,
    TENNIS_PLAYERS,
    SOCCER_TEAMS,
    MLB_TEAMS,
    GOLF_PLAYERS,
    F1_ENTRANTS,
]

PEOPLE_TABLES: List[Dict[str, List[str]]] = [
    US_POLITICIANS,
    INTERNATIONAL_POLITICIANS,
    TECH_EXECUTIVES,
    CENTRAL_BANKERS,
    CELEBRITIES,
]

ORGANIZATION_TABLES: List[Dict[str, List[str]]] = [
    CENTRAL_BANKS,
    SPORTS_LEAGUES,
    TECH_COMPANIES,
    FINANCIAL_INSTITUTIONS,
    GOVERNMENT_AGENCIES,
    CRYPTO_PROJECTS,
    MEDIA_ORGANIZATIONS,
]

# Matchup-title team names for the sports pipeline: full name -> nicknames.
# Bare city names are left out; they collide across leagues.
MATCHUP_TEAMS: Dict[str, List[str]] = {
    # NBA
    "los angeles lakers": ["la lakers", "lakers"],
    "los angeles clippers": ["la clippers", "clippers"],
    "golden state warriors": ["warriors", "gsw", "dubs"],
    "boston celtics": ["celtics"],
    "new york knicks": ["knicks", "ny knicks"],
    "brooklyn nets": ["nets", "bkn"],
    "chicago bulls": ["bulls"],
    "miami heat": ["heat"],
    "milwaukee bucks": ["bucks"],
    "phoenix suns": ["suns"],
    "dallas mavericks": ["mavs", "mavericks"],
    "denver nuggets": ["nuggets"],
    "philadelphia 76ers": ["sixers", "76ers"],
    "memphis grizzlies": ["grizzlies", "grizz"],
    "cleveland cavaliers": ["cavs", "cavaliers"],
    "toronto raptors": ["raptors"],
    "indiana pacers": ["pacers"],
    "atlanta hawks": ["hawks"],
    "orlando magic": ["magic"],
    "washington wizards": ["wizards"],
    "detroit pistons": ["pistons"],
    "charlotte hornets": ["hornets"],
    "portland trail blazers": ["blazers", "trail blazers"],
    "utah jazz": ["jazz"],
    "new orleans pelicans": ["pelicans", "pels"],
    "minnesota timberwolves": ["timberwolves", "twolves"],
    "oklahoma city thunder": ["thunder", "okc"],
    "sacramento kings": ["sacramento kings"],
    "san antonio spurs": ["san antonio spurs"],
    "houston rockets": ["rockets"],
    # NFL
    "kansas city chiefs": ["chiefs"],
    "philadelphia eagles": ["eagles"],
    "buffalo bills": ["bills"],
    "dallas cowboys": ["cowboys"],
    "miami dolphins": ["dolphins"],
    "baltimore ravens": ["ravens"],
    "cincinnati bengals": ["bengals"],
    "los angeles chargers": ["chargers", "la chargers"],
    "detroit lions": ["lions"],
    "san francisco 49ers": ["49ers", "niners"],
    "jacksonville jaguars": ["jaguars", "jags"],
    "minnesota vikings": ["vikings"],
    "new york jets": ["ny jets"],
    "new york giants": ["ny giants"],
    "new england patriots": ["patriots", "pats"],
    "seattle seahawks": ["seahawks"],
    "denver broncos": ["broncos"],
    "green bay packers": ["packers"],
    "las vegas raiders": ["raiders"],
    "pittsburgh steelers": ["steelers"],
    "cleveland browns": ["browns"],
    "tennessee titans": ["titans"],
    "indianapolis colts": ["colts"],
    "houston texans": ["texans"],
    "arizona cardinals": ["az cardinals"],
    "atlanta falcons": ["atlanta falcons"],
    "carolina panthers": ["carolina panthers"],
    "new orleans saints": ["new orleans saints"],
    "tampa bay buccaneers": ["buccaneers"],
    "washington commanders": ["commanders"],
    "chicago bears": ["bears"],
    "los angeles rams": ["rams", "la rams"],
    # MLB
    "new york yankees": ["yankees", "ny yankees"],
    "los angeles dodgers": ["dodgers", "la dodgers"],
    "boston red sox": ["red sox"],
    "chicago cubs": ["cubs"],
    "new york mets": ["mets", "ny mets"],
    "atlanta braves": ["braves"],
    "houston astros": ["astros"],
    "philadelphia phillies": ["phillies"],
    "san diego padres": ["padres"],
    "seattle mariners": ["mariners"],
    "toronto blue jays": ["blue jays"],
    "baltimore orioles": ["orioles"],
    "chicago white sox": ["white sox"],
    "milwaukee brewers": ["brewers"],
    "san francisco giants": ["sf giants"],
    # NHL
    "new york rangers": ["ny rangers", "nyr"],
    "boston bruins": ["bruins"],
    "toronto maple leafs": ["maple leafs", "leafs"],
    "montreal canadiens": ["canadiens", "habs"],
    "edmonton oilers": ["oilers"],
    "calgary flames": ["flames"],
    "vancouver canucks": ["canucks"],
    "colorado avalanche": ["avalanche", "avs"],
    "pittsburgh penguins": ["penguins", "pens"],
    "washington capitals": ["capitals", "caps"],
    "tampa bay lightning": ["lightning"],
    "vegas golden knights": ["golden knights", "vgk"],
    "detroit red wings": ["red wings"],
    # Soccer
    "manchester united": ["man united", "man utd", "mufc"],
    "manchester city": ["man city", "mcfc"],
    "liverpool": ["liverpool fc", "lfc"],
    "chelsea": ["chelsea fc", "cfc"],
    "arsenal": ["arsenal fc", "gunners"],
    "tottenham hotspur": ["tottenham", "thfc"],
    "real madrid": ["rmcf", "los blancos"],
    "barcelona": ["barca", "fc barcelona"],
    "bayern munich": ["bayern", "fc bayern"],
    "borussia dortmund": ["dortmund", "bvb"],
    "inter milan": ["internazionale"],
    "ac milan": ["rossoneri"],
    "juventus": ["juve"],
}

CITY_ABBREVIATIONS: Dict[str, str] = {
    "la": "los angeles",
    "ny": "new york",
    "sf": "san francisco",
    "kc": "kansas city",
    "okc": "oklahoma city",
    "philly": "philadelphia",
    "chi": "chicago",
    "det": "detroit",
    "bos": "boston",
    "mia": "miami",
    "atl": "atlanta",
    "hou": "houston",
    "dal": "dallas",
    "den": "denver",
    "phx": "phoenix",
    "sea": "seattle",
    "tb": "tampa bay",
    "lv": "las vegas",
    "gb": "green bay",
    "cle": "cleveland",
    "pit": "pittsburgh",
    "bal": "baltimore",
    "buf": "buffalo",
    "jax": "jacksonville",
}
