"""
Clash Rules Enhancer
Clean and rename subscription nodes, then add rules, rule-providers, proxy-groups and DNS settings to a Clash config
"""

import os
import re
import sys
import copy
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Collection, Dict, List, Optional, Pattern, Tuple

import yaml
from pydantic import BaseModel, Field

log = logging.getLogger(__name__)

SCRIPT_NAME = "Sub-Store Rules"
VERSION = "1.1.0"
DEFAULT_PROXY_NAME = "代理模式"

BUILTIN_TARGETS = ('DIRECT', 'REJECT')


class TransformError(Exception):
    """Raised when the config cannot be enhanced"""


# ==================== Arguments ====================

class EnhancerArguments(BaseModel):
    """Invocation arguments, accepted with their camelCase keys"""
    proxy_name: str = Field(DEFAULT_PROXY_NAME, alias="proxyName")
    custom_rules: List[str] = Field(default_factory=list, alias="customRules")
    geox_mirror: str = Field("https://fastgh.lainbo.com/", alias="geoxMirror")

    model_config = {
        "populate_by_name": True
    }


# ==================== Regex Tables ====================

class Region(Enum):
    HK = 'HK'
    SG = 'SG'
    JP = 'JP'
    US = 'US'
    TW = 'TW'
    KR = 'KR'


class SpecialTag(Enum):
    IPLC = 'IPLC'
    IEPL = 'IEPL'
    BGP = 'BGP'
    RELAY = 'RELAY'
    PREMIUM = 'PREMIUM'
    PLUS = 'PLUS'
    PRO = 'PRO'
    GAME = 'GAME'


# Nodes carrying subscription info / ads instead of a real server
REMOVE_NODES = re.compile(
    r'套餐|到期|有效|剩余|版本|已用|过期|失联|测试|官方|网址|备用|群|TEST|客服|网站|获取|订阅|流量|机场|下次|官址|联系|邮箱|工单|学术|USE[D]?|TOTAL|EXPIRE|EMAIL',
    re.I,
)

MULTIPLIER = re.compile(r'(?:\d+(?:\.\d+)?)[xX×]|[xX×](?:\d+(?:\.\d+)?)')

SPECIAL_TAGS = re.compile('|'.join(tag.value for tag in SpecialTag), re.I)

# Trailing index such as " 01", "-02" or "3.1"; digits glued to a multiplier are kept
ORDINAL_SUFFIX = re.compile(r'[\s\-_]*(?<![xX×\d.])(?:\d{1,2}(?:\.\d{1,2})?)\s*$')
# Further indexes left behind, e.g. "Node 1 2"; these must stand alone
SEPARATED_ORDINAL = re.compile(r'(?:^|[\s\-_]+)\d{1,2}(?:\.\d{1,2})?\s*$')

# First match wins
REGION_TABLE: List[Tuple[Region, Pattern]] = [
    (Region.HK, re.compile(r'^(?:香港|HK|Hong Kong|🇭🇰)', re.I)),
    (Region.SG, re.compile(r'^(?:新加坡|狮城|SG|Singapore|🇸🇬)', re.I)),
    (Region.JP, re.compile(r'^(?:日本|JP|Japan|🇯🇵)', re.I)),
    (Region.US, re.compile(r'^(?:美国|US|United States|🇺🇸)', re.I)),
    (Region.TW, re.compile(r'^(?:台湾|TW|Taiwan|🇹🇼)', re.I)),
    (Region.KR, re.compile(r'^(?:韩国|KR|Korea|🇰🇷)', re.I)),
]

# Applied in order, each one on the output of the previous
REGION_REPLACE: List[Tuple[str, Pattern]] = [
    ('GB', re.compile(r'UK')),
    ('B-G-P', re.compile(r'BGP')),
    ('Russia Moscow', re.compile(r'Moscow')),
    ('Korea Chuncheon', re.compile(r'Chuncheon|Seoul')),
    ('Hong Kong', re.compile(r'Hongkong|HONG KONG', re.I)),
    ('United Kingdom London', re.compile(r'London|Great Britain')),
    ('Dubai United Arab Emirates', re.compile(r'United Arab Emirates')),
    ('Taiwan TW 台湾 🇹🇼', re.compile(r'(台|Tai\s?wan|TW).*?🇨🇳|🇨🇳.*?(台|Tai\s?wan|TW)')),
    ('United States', re.compile(r'USA|Los Angeles|San Jose|Silicon Valley|Michigan')),
    ('澳大利亚', re.compile(r'澳洲|墨尔本|悉尼|土澳|(深|沪|呼|京|广|杭)澳')),
    ('德国', re.compile(r'(深|沪|呼|京|广|杭)德(?!.*(I|线))|法兰克福|滬德')),
    ('香港', re.compile(r'(深|沪|呼|京|广|杭)港(?!.*(I|线))')),
    ('日本', re.compile(r'(深|沪|呼|京|广|杭|中|辽)日(?!.*(I|线))|东京|大坂')),
    ('新加坡', re.compile(r'狮城|(深|沪|呼|京|广|杭)新')),
    ('美国', re.compile(r'(深|沪|呼|京|广|杭)美|波特兰|芝加哥|哥伦布|纽约|硅谷|俄勒冈|西雅图|芝加哥')),
]


def detect_region(name: str) -> Optional[Region]:
    for region, pattern in REGION_TABLE:
        if pattern.search(name):
            return region
    return None


# ==================== NodeCleaner ====================

@dataclass
class NodeResult:
    """Outcome of cleaning one node: the renamed node, or why it was dropped"""
    original_name: Any
    node: Optional[dict] = None
    reason: Optional[str] = None
    region: Optional[Region] = None

    @property
    def kept(self) -> bool:
        return self.node is not None


@dataclass
class ParsedName:
    name: str
    region: Optional[Region] = None
    special_tag: Optional[SpecialTag] = None
    multiplier: Optional[str] = None


class NodeCleaner:
    """Drop junk nodes and unify node names to: Region SpecialTag Multiplier"""

    @staticmethod
    def is_junk(name: str) -> bool:
        return REMOVE_NODES.search(name) is not None

    @staticmethod
    def replace_aliases(name: str) -> str:
        result = name
        for label, pattern in REGION_REPLACE:
            result = pattern.sub(label, result)
        return result

    @staticmethod
    def strip_ordinal(name: str) -> str:
        """Remove trailing node indexes, e.g. 'HK-02' -> 'HK', 'Hysteria2 01' -> 'Hysteria2'"""
        result = ORDINAL_SUFFIX.sub('', name, count=1)
        if result == name:
            return result
        while True:
            stripped = SEPARATED_ORDINAL.sub('', result, count=1)
            if stripped == result:
                return result
            result = stripped

    @staticmethod
    def parse_name(name: str) -> ParsedName:
        """Substitute aliases, strip the index and pull out region / tag / multiplier"""
        processed = NodeCleaner.strip_ordinal(NodeCleaner.replace_aliases(name))

        region = detect_region(processed)
        multiplier = MULTIPLIER.search(processed)
        special = SPECIAL_TAGS.search(processed)

        parts = []
        if region:
            parts.append(region.value)
        if special:
            parts.append(special.group(0).upper())
        if multiplier:
            parts.append(multiplier.group(0))

        return ParsedName(
            name=' '.join(parts) or processed,
            region=region,
            special_tag=SpecialTag(special.group(0).upper()) if special else None,
            multiplier=multiplier.group(0) if multiplier else None,
        )

    @staticmethod
    def clean_node(proxy: dict, reserved: Collection[str] = ()) -> NodeResult:
        """Clean a single node; the node's name is rewritten in place.

        Names in reserved (group names and builtin targets) cannot be used by a node.
        """
        original = proxy.get('name') if isinstance(proxy, dict) else None
        try:
            if not isinstance(original, str):
                raise TypeError(f"node name must be a string, got {type(original).__name__}")

            if NodeCleaner.is_junk(original):
                return NodeResult(original, reason='junk')

            parsed = NodeCleaner.parse_name(original)
            if not parsed.name.strip():
                raise ValueError("empty name after normalization")
            if parsed.name in reserved:
                raise ValueError(f"name '{parsed.name}' collides with a proxy-group or builtin target")

            proxy['name'] = parsed.name
            return NodeResult(original, node=proxy, region=parsed.region)
        except Exception as e:
            return NodeResult(original, reason=str(e))

    @staticmethod
    def clean(proxies: List[dict], reserved: Collection[str] = ()) -> List[NodeResult]:
        """Clean every node, keeping the input order"""
        results = []
        for proxy in proxies:
            result = NodeCleaner.clean_node(proxy, reserved)
            if result.reason == 'junk':
                log.info(f"删除无效节点: {result.original_name}")
            elif not result.kept:
                log.warning(f"节点处理失败: {result.original_name}, {result.reason}")
            results.append(result)
        return results


# ==================== RuleAssembler ====================

RULESET_CDN = "https://cdn.jsdelivr.net/gh/Loyalsoldier/clash-rules@release/"
BLACKMATRIX_RULES = "https://raw.githubusercontent.com/blackmatrix7/ios_rule_script/master/rule/Clash/"
CUSTOM_PATH = "/.config/clash/ruleset/custom/"
CATCH_ALL_GROUP = "漏网之鱼"


def _provider(behavior: str, url: str, path: str) -> dict:
    return {
        'type': 'http',
        'behavior': behavior,
        'url': url,
        'path': path,
        'interval': 86400,
    }


class RuleAssembler:
    """Build the rules list and rule-providers mapping"""

    # (provider, behavior, path); url comes from the Loyalsoldier release
    LOYALSOLDIER_PROVIDERS = [
        ('reject', 'domain', CUSTOM_PATH + 'reject.yaml'),
        ('direct', 'domain', CUSTOM_PATH + 'direct.yaml'),
        ('proxy', 'domain', CUSTOM_PATH + 'proxy.yaml'),
        ('icloud', 'domain', './ruleset/icloud.yaml'),
        ('apple', 'domain', './ruleset/apple.yaml'),
        ('google', 'domain', './ruleset/google.yaml'),
        ('private', 'domain', CUSTOM_PATH + 'private.yaml'),
        ('gfw', 'domain', CUSTOM_PATH + 'gfw.yaml'),
        ('greatfire', 'domain', CUSTOM_PATH + 'greatfire.yaml'),
        ('tld-not-cn', 'domain', CUSTOM_PATH + 'tld-not-cn.yaml'),
        ('telegramcidr', 'ipcidr', CUSTOM_PATH + 'telegramcidr.yaml'),
        ('cncidr', 'ipcidr', CUSTOM_PATH + 'cncidr.yaml'),
        ('lancidr', 'ipcidr', CUSTOM_PATH + 'lancidr.yaml'),
        ('applications', 'classical', CUSTOM_PATH + 'applications.yaml'),
    ]

    # (provider, blackmatrix7 rule directory)
    SERVICE_PROVIDERS = [
        ('openai', 'OpenAI'),
        ('claude', 'Claude'),
        ('spotify', 'Spotify'),
    ]

    def __init__(self, arguments: EnhancerArguments):
        self.proxy_name = arguments.proxy_name
        self.custom_rules = list(arguments.custom_rules)

    def build_rules(self) -> List[str]:
        for rule in self.custom_rules:
            if rule.split(',', 1)[0].strip().upper() == 'MATCH':
                raise TransformError(f"custom rule must not be a MATCH rule: {rule}")

        proxy = self.proxy_name
        return [
            *self.custom_rules,
            "RULE-SET,reject,广告拦截",
            "RULE-SET,direct,DIRECT",
            "RULE-SET,cncidr,DIRECT",
            "RULE-SET,private,DIRECT",
            "RULE-SET,lancidr,DIRECT",
            "GEOIP,LAN,DIRECT,no-resolve",
            "GEOIP,CN,DIRECT,no-resolve",
            "RULE-SET,applications,DIRECT",
            "RULE-SET,openai,ChatGPT",
            "RULE-SET,claude,Claude",
            "RULE-SET,spotify,Spotify",
            "RULE-SET,telegramcidr,电报消息,no-resolve",
            f"RULE-SET,tld-not-cn,{proxy}",
            f"RULE-SET,google,{proxy}",
            f"RULE-SET,icloud,{proxy}",
            f"RULE-SET,apple,{proxy}",
            f"RULE-SET,gfw,{proxy}",
            f"RULE-SET,greatfire,{proxy}",
            f"RULE-SET,proxy,{proxy}",
            f"MATCH,{CATCH_ALL_GROUP}",
        ]

    def build_providers(self) -> Dict[str, dict]:
        providers = {}
        for name, behavior, path in self.LOYALSOLDIER_PROVIDERS:
            providers[name] = _provider(behavior, f"{RULESET_CDN}{name}.txt", path)
        for name, directory in self.SERVICE_PROVIDERS:
            providers[name] = _provider(
                'classical',
                f"{BLACKMATRIX_RULES}{directory}/{directory}.yaml",
                f"{CUSTOM_PATH}{name}.yaml",
            )
        return providers

    def build(self) -> Tuple[List[str], Dict[str, dict]]:
        return self.build_rules(), self.build_providers()


# ==================== ProxyGroupGenerator ====================

ICON_BASE = "https://fastly.jsdelivr.net/gh/clash-verge-rev/clash-verge-rev.github.io@main/docs/assets/icons/"
HEALTH_CHECK_URL = "http://www.gstatic.com/generate_204"

MANUAL_GROUP = "手动选择"
AUTO_GROUP = "自动选择"
HASH_GROUP = "负载均衡(散列)"
ROUND_ROBIN_GROUP = "负载均衡(轮询)"


def _health_check(**extra) -> dict:
    check = {
        'url': HEALTH_CHECK_URL,
        'interval': 300,
    }
    check.update(extra)
    check['max-failed-times'] = 3
    check['lazy'] = True
    return check


class ProxyGroupGenerator:
    """Generate proxy-groups config"""

    def __init__(self, arguments: EnhancerArguments):
        self.proxy_name = arguments.proxy_name

    @staticmethod
    def group_by_region(names: List[str]) -> Dict[Region, List[str]]:
        """Group node names by region, in region table order; regions without nodes are left out"""
        groups: Dict[Region, List[str]] = {region: [] for region, _ in REGION_TABLE}
        for name in names:
            region = detect_region(name)
            if region:
                groups[region].append(name)
        return {region: members for region, members in groups.items() if members}

    @staticmethod
    def region_groups(region_nodes: Dict[Region, List[str]]) -> Tuple[List[dict], List[dict]]:
        auto_groups = []
        manual_groups = []
        for region, members in region_nodes.items():
            auto_groups.append({
                'name': f"{region.value}-自动选择",
                'type': 'url-test',
                **_health_check(tolerance=50),
                'proxies': list(members),
                'hidden': True,
            })
            manual_groups.append({
                'name': f"{region.value}-手动选择",
                'type': 'select',
                'proxies': ['DIRECT', *members],
                'hidden': False,
            })
        return auto_groups, manual_groups

    @staticmethod
    def prefer_regions(regions: List[Region], region_nodes: Dict[Region, List[str]]) -> List[str]:
        """Regional auto groups that exist, falling back to manual selection"""
        preferred = [f"{region.value}-自动选择" for region in regions if region in region_nodes]
        return preferred + [MANUAL_GROUP]

    def reserved_names(self) -> set:
        """Every name a generated group or builtin target can take"""
        names = {
            self.proxy_name, MANUAL_GROUP, AUTO_GROUP, HASH_GROUP, ROUND_ROBIN_GROUP,
            'ChatGPT', 'Claude', 'Spotify', '电报消息', '广告拦截', CATCH_ALL_GROUP,
            *BUILTIN_TARGETS,
        }
        for region, _ in REGION_TABLE:
            names.add(f"{region.value}-自动选择")
            names.add(f"{region.value}-手动选择")
        return names

    def generate_groups(self, proxies: List[dict]) -> List[dict]:
        """Generate complete proxy-groups config"""
        all_proxies = [p['name'] for p in proxies]
        region_nodes = self.group_by_region(all_proxies)
        auto_groups, manual_groups = self.region_groups(region_nodes)

        return [
            {
                'name': self.proxy_name,
                'type': 'select',
                'proxies': [AUTO_GROUP, MANUAL_GROUP, HASH_GROUP, ROUND_ROBIN_GROUP, 'DIRECT'],
                'icon': ICON_BASE + 'proxy.svg',
            },
            {
                'name': MANUAL_GROUP,
                'type': 'select',
                'proxies': list(all_proxies),
                'icon': ICON_BASE + 'select.svg',
            },
            {
                'name': AUTO_GROUP,
                'type': 'url-test',
                **_health_check(tolerance=50),
                'proxies': list(all_proxies),
                'icon': ICON_BASE + 'auto.svg',
            },
            {
                'name': HASH_GROUP,
                'type': 'load-balance',
                'strategy': 'consistent-hashing',
                **_health_check(),
                'proxies': list(all_proxies),
                'icon': ICON_BASE + 'round-robin.svg',
            },
            {
                'name': ROUND_ROBIN_GROUP,
                'type': 'load-balance',
                'strategy': 'round-robin',
                **_health_check(),
                'proxies': list(all_proxies),
                'icon': ICON_BASE + 'round-robin.svg',
            },
            {
                'name': 'ChatGPT',
                'type': 'select',
                'proxies': self.prefer_regions([Region.US, Region.JP], region_nodes),
                'icon': ICON_BASE + 'chatgpt.svg',
            },
            {
                'name': 'Claude',
                'type': 'select',
                'proxies': self.prefer_regions([Region.US], region_nodes),
                'icon': "https://raw.githubusercontent.com/clash-verge-rev/clash-verge-rev.github.io/main/docs/assets/icons/claude.svg",
            },
            {
                'name': 'Spotify',
                'type': 'select',
                'proxies': ['DIRECT', self.proxy_name],
                'icon': ICON_BASE + 'spotify.svg',
            },
            {
                'name': '电报消息',
                'type': 'select',
                'proxies': [self.proxy_name, MANUAL_GROUP],
                'icon': ICON_BASE + 'telegram.svg',
            },
            {
                'name': '广告拦截',
                'type': 'select',
                'proxies': ['REJECT', 'DIRECT'],
                'icon': ICON_BASE + 'reject.svg',
            },
            {
                'name': CATCH_ALL_GROUP,
                'type': 'select',
                'proxies': [self.proxy_name, 'DIRECT'],
                'icon': ICON_BASE + 'fish.svg',
            },
            *auto_groups,
            *manual_groups,
        ]

    @staticmethod
    def check_references(groups: List[dict], proxy_names: List[str]):
        """Every member must be a node, a builtin target or another group, and groups must not form a cycle"""
        group_names = [g['name'] for g in groups]
        if len(set(group_names)) != len(group_names):
            raise TransformError("duplicate proxy-group name")

        group_set = set(group_names)
        known = set(proxy_names) | set(BUILTIN_TARGETS) | group_set
        edges: Dict[str, List[str]] = {}
        for group in groups:
            for member in group['proxies']:
                if member not in known:
                    raise TransformError(f"proxy-group '{group['name']}' references unknown member '{member}'")
            edges[group['name']] = [m for m in group['proxies'] if m in group_set]

        visiting, done = set(), set()

        def visit(name: str):
            if name in done:
                return
            if name in visiting:
                raise TransformError(f"proxy-group cycle through '{name}'")
            visiting.add(name)
            for child in edges.get(name, []):
                visit(child)
            visiting.discard(name)
            done.add(name)

        for name in group_names:
            visit(name)


# ==================== DnsAssembler ====================

CN_DNS = [
    "https://223.5.5.5/dns-query",
    "https://1.12.12.12/dns-query",
]
TRUST_DNS = [
    "quic://dns.cooluc.com",
    "https://1.0.0.1/dns-query",
    "https://1.1.1.1/dns-query",
]
RAW_GEOX_URLS = {
    'geoip': "https://github.com/MetaCubeX/meta-rules-dat/releases/download/latest/geoip-lite.dat",
    'geosite': "https://github.com/MetaCubeX/meta-rules-dat/releases/download/latest/geosite.dat",
    'mmdb': "https://github.com/MetaCubeX/meta-rules-dat/releases/download/latest/country-lite.mmdb",
}


class DnsAssembler:
    """Split-horizon DNS policy plus client-wide options"""

    def __init__(self, arguments: EnhancerArguments):
        self.geox_mirror = arguments.geox_mirror

    @staticmethod
    def dns_options() -> dict:
        return {
            'enable': True,
            'prefer-h3': True,
            'default-nameserver': list(CN_DNS),
            'nameserver': list(TRUST_DNS),
            'nameserver-policy': {
                'geosite:cn': list(CN_DNS),
                'geosite:geolocation-!cn': list(TRUST_DNS),
            },
            'fallback': list(TRUST_DNS),
            'fallback-filter': {
                'geoip': True,
                'geoip-code': 'CN',
                'geosite': ['gfw'],
                'ipcidr': ['240.0.0.0/4'],
                'domain': ['+.google.com', '+.facebook.com', '+.youtube.com'],
            },
        }

    def other_options(self) -> dict:
        return {
            'unified-delay': True,
            'tcp-concurrent': True,
            'profile': {
                'store-selected': True,
                'store-fake-ip': True,
            },
            'sniffer': {
                'enable': True,
                'sniff': {
                    'TLS': {
                        'ports': [443, 8443],
                    },
                    'HTTP': {
                        'ports': [80, '8080-8880'],
                        'override-destination': True,
                    },
                },
            },
            'geodata-mode': True,
            'geox-url': {key: f"{self.geox_mirror}{url}" for key, url in RAW_GEOX_URLS.items()},
        }

    def build(self, existing_dns: Optional[dict] = None) -> Tuple[dict, dict]:
        """Return (merged dns section, top-level options)"""
        if existing_dns is None:
            existing_dns = {}
        if not isinstance(existing_dns, dict):
            raise TransformError("existing 'dns' section is not a mapping")
        return {**existing_dns, **self.dns_options()}, self.other_options()


# ==================== RulesEnhancer ====================

Notifier = Callable[[str, str, str], None]


@dataclass
class TransformOutcome:
    config: Any
    ok: bool
    error: Optional[str] = None
    dropped: List[str] = field(default_factory=list)


class RulesEnhancer:
    """Run node cleaning and the rule / group / DNS assemblers over one config"""

    def __init__(self, arguments: Optional[dict] = None, notifier: Optional[Notifier] = None):
        self.arguments = arguments or {}
        self.notifier = notifier

    def enhance(self, config: dict) -> Tuple[dict, List[str]]:
        """Return an enhanced copy of config and the names of dropped nodes"""
        arguments = EnhancerArguments(**self.arguments)

        if not isinstance(config, dict):
            raise TransformError("config must be a mapping")
        proxies = config.get('proxies')
        if not proxies:
            raise TransformError("节点列表为空")
        if not isinstance(proxies, list):
            raise TransformError("'proxies' must be a list")

        generator = ProxyGroupGenerator(arguments)
        result = copy.deepcopy(config)
        cleaned = NodeCleaner.clean(result['proxies'], generator.reserved_names())
        kept = [r.node for r in cleaned if r.kept]
        dropped = [str(r.original_name) for r in cleaned if not r.kept]
        if not kept:
            raise TransformError("清理后没有可用节点")

        rules, providers = RuleAssembler(arguments).build()

        groups = generator.generate_groups(kept)
        generator.check_references(groups, [p['name'] for p in kept])

        dns, options = DnsAssembler(arguments).build(result.get('dns'))

        result['proxies'] = kept
        result['rule-providers'] = providers
        result['rules'] = rules
        result['proxy-groups'] = groups
        result['dns'] = dns
        result.update(options)
        return result, dropped

    def run(self, config: dict) -> TransformOutcome:
        log.info(f"{SCRIPT_NAME} v{VERSION} 开始处理...")
        try:
            result, dropped = self.enhance(config)
        except Exception as e:
            log.error(f"处理失败: {e}")
            if self.notifier:
                self.notifier(SCRIPT_NAME, "处理失败", str(e))
            return TransformOutcome(config, False, str(e))

        log.info(f"处理完成: 保留 {len(result['proxies'])} 个节点, 删除 {len(dropped)} 个")
        return TransformOutcome(result, True, dropped=dropped)


def main(config: dict, arguments: Optional[dict] = None, notifier: Optional[Notifier] = None) -> dict:
    """Enhance config in place and return it; on failure config is returned unchanged"""
    outcome = RulesEnhancer(arguments, notifier).run(config)
    if outcome.ok:
        config.clear()
        config.update(outcome.config)
    return config


# ==================== YAML I/O ====================

def load_config(content: str) -> dict:
    config = yaml.safe_load(content)
    if not isinstance(config, dict):
        raise TransformError("config must be a YAML mapping")
    return config


def dump_config(config: dict) -> str:
    return yaml.dump(config, allow_unicode=True, sort_keys=False, default_flow_style=False)


# ==================== Main Entry ====================


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format="[%(asctime)s] %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    INPUT_FILE = sys.argv[1] if len(sys.argv) > 1 else os.path.join(BASE_DIR, 'config.yaml')
    OUTPUT_FILE = sys.argv[2] if len(sys.argv) > 2 else os.path.join(BASE_DIR, 'myconfig.yaml')

    if not os.path.exists(INPUT_FILE):
        log.error(f"Input file {INPUT_FILE} does not exist")
        sys.exit(1)

    with open(INPUT_FILE, 'r', encoding='utf-8') as f:
        try:
            source = load_config(f.read())
        except (yaml.YAMLError, TransformError) as e:
            log.error(f"Cannot parse {INPUT_FILE}: {e}")
            sys.exit(1)

    outcome = RulesEnhancer().run(source)
    with open(OUTPUT_FILE, 'w', encoding='utf-8') as f:
        f.write(dump_config(outcome.config))

    log.info(f"Config saved to: {OUTPUT_FILE}")
    sys.exit(0 if outcome.ok else 2)
