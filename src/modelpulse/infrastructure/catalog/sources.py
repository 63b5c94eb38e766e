"""Static catalog of probed providers and models.

Tiers follow the Aider polyglot coding benchmark:

- S+: 75%+        - A-: 36–44%
- S:  62–74%      - B+: 25–36%
- A+: 54–62%      - B:  14–25%
- A:  44–54%      - C:  <14% or lightweight edge models

Declared scores are the published polyglot percentage where one exists;
``None`` where the tier is an estimate.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from modelpulse.domain.entities.catalog import CatalogModel, Provider
from modelpulse.domain.entities.endpoint import EndpointState

_M = CatalogModel

NVIDIA_NIM = Provider(
    key="nvidia",
    name="NVIDIA NIM",
    base_url="https://integrate.api.nvidia.com/v1",
    env_vars=("NVIDIA_API_KEY",),
    models=(
        # S+
        _M("deepseek-ai/deepseek-v3.1", "DeepSeek V3.1", "S+", "76.1%", "128k"),
        _M("deepseek-ai/deepseek-v3.1-terminus", "DeepSeek V3.1 Term", "S+", None, "128k"),
        _M("deepseek-ai/deepseek-v3.2", "DeepSeek V3.2", "S+", "74.2%", "128k"),
        _M("moonshotai/kimi-k2.5", "Kimi K2.5", "S+", None, "128k"),
        _M("mistralai/devstral-2-123b-instruct-2512", "Devstral 2 123B", "S+", None, "128k"),
        _M("nvidia/llama-3.1-nemotron-ultra-253b-v1", "Nemotron Ultra 253B", "S+", None, "128k"),
        _M("mistralai/mistral-large-3-675b-instruct-2512", "Mistral Large 675B", "S+", None, "128k"),
        # S
        _M("qwen/qwen2.5-coder-32b-instruct", "Qwen2.5 Coder 32B", "S", "71.4%", "32k"),
        _M("z-ai/glm5", "GLM 5", "S", None, "128k"),
        _M("qwen/qwen3.5-397b-a17b", "Qwen3.5 400B VLM", "S", None, "128k"),
        _M("qwen/qwen3-coder-480b-a35b-instruct", "Qwen3 Coder 480B", "S", "61.8%", "256k"),
        _M("qwen/qwen3-next-80b-a3b-thinking", "Qwen3 80B Thinking", "S", None, "128k"),
        _M("meta/llama-3.1-405b-instruct", "Llama 3.1 405B", "S", "66.2%", "128k"),
        _M("minimaxai/minimax-m2.1", "MiniMax M2.1", "S", None, "128k"),
        # A+
        _M("moonshotai/kimi-k2-thinking", "Kimi K2 Thinking", "A+", None, "128k"),
        _M("moonshotai/kimi-k2-instruct", "Kimi K2 Instruct", "A+", "59.1%", "128k"),
        _M("qwen/qwen3-235b-a22b", "Qwen3 235B", "A+", "59.6%", "128k"),
        _M("meta/llama-3.3-70b-instruct", "Llama 3.3 70B", "A+", "59.4%", "128k"),
        _M("z-ai/glm4.7", "GLM 4.7", "A+", None, "128k"),
        _M("qwen/qwen3-next-80b-a3b-instruct", "Qwen3 80B Instruct", "A+", None, "128k"),
        # A
        _M("minimaxai/minimax-m2", "MiniMax M2", "A", None, "128k"),
        _M("mistralai/mistral-medium-3-instruct", "Mistral Medium 3", "A", None, "128k"),
        _M("mistralai/magistral-small-2506", "Magistral Small", "A", None, "32k"),
        _M("nvidia/nemotron-3-nano-30b-a3b", "Nemotron Nano 30B", "A", None, "128k"),
        _M("deepseek-ai/deepseek-r1-distill-qwen-32b", "R1 Distill 32B", "A", None, "128k"),
        # A-
        _M("openai/gpt-oss-120b", "GPT OSS 120B", "A-", "41.8%", "128k"),
        _M("nvidia/llama-3.3-nemotron-super-49b-v1.5", "Nemotron Super 49B", "A-", None, "128k"),
        _M("meta/llama-4-scout-17b-16e-instruct", "Llama 4 Scout", "A-", None, "128k"),
        _M("deepseek-ai/deepseek-r1-distill-qwen-14b", "R1 Distill 14B", "A-", None, "64k"),
        _M("igenius/colosseum_355b_instruct_16k", "Colosseum 355B", "A-", None, "16k"),
        # B+
        _M("qwen/qwq-32b", "QwQ 32B", "B+", "20.9%", "32k"),
        _M("openai/gpt-oss-20b", "GPT OSS 20B", "B+", None, "128k"),
        _M("stockmark/stockmark-2-100b-instruct", "Stockmark 100B", "B+", None, "32k"),
        _M("bytedance/seed-oss-36b-instruct", "Seed OSS 36B", "B+", None, "128k"),
        _M("stepfun-ai/step-3.5-flash", "Step 3.5 Flash", "B+", None, "128k"),
        # B
        _M("meta/llama-4-maverick-17b-128e-instruct", "Llama 4 Maverick", "B", "15.6%", "128k"),
        _M("mistralai/mixtral-8x22b-instruct-v0.1", "Mixtral 8x22B", "B", None, "64k"),
        _M("mistralai/ministral-14b-instruct-2512", "Ministral 14B", "B", None, "32k"),
        _M("ibm/granite-34b-code-instruct", "Granite 34B Code", "B", None, "8k"),
        _M("deepseek-ai/deepseek-r1-distill-llama-8b", "R1 Distill 8B", "B", None, "32k"),
        # C
        _M("deepseek-ai/deepseek-r1-distill-qwen-7b", "R1 Distill 7B", "C", None, "32k"),
        _M("google/gemma-2-9b-it", "Gemma 2 9B", "C", None, "8k"),
        _M("microsoft/phi-3.5-mini-instruct", "Phi 3.5 Mini", "C", None, "128k"),
        _M("microsoft/phi-4-mini-instruct", "Phi 4 Mini", "C", None, "128k"),
    ),
)

GROQ = Provider(
    key="groq",
    name="Groq",
    base_url="https://api.groq.com/openai/v1",
    env_vars=("GROQ_API_KEY",),
    models=(
        _M("moonshotai/kimi-k2-instruct", "Kimi K2 Instruct", "A+", "59.1%", "128k"),
        _M("llama-3.3-70b-versatile", "Llama 3.3 70B", "A+", "59.4%", "128k"),
        _M("openai/gpt-oss-120b", "GPT OSS 120B", "A-", "41.8%", "128k"),
        _M("openai/gpt-oss-20b", "GPT OSS 20B", "B+", None, "128k"),
        _M("llama-3.1-8b-instant", "Llama 3.1 8B", "C", None, "128k"),
    ),
)

CEREBRAS = Provider(
    key="cerebras",
    name="Cerebras",
    base_url="https://api.cerebras.ai/v1",
    env_vars=("CEREBRAS_API_KEY",),
    models=(
        _M("qwen-3-coder-480b", "Qwen3 Coder 480B", "S", "61.8%", "128k"),
        _M("qwen-3-235b-a22b-instruct-2507", "Qwen3 235B", "A+", "59.6%", "64k"),
        _M("llama-3.3-70b", "Llama 3.3 70B", "A+", "59.4%", "128k"),
        _M("gpt-oss-120b", "GPT OSS 120B", "A-", "41.8%", "128k"),
    ),
)

PROVIDERS: dict[str, Provider] = {
    p.key: p for p in (NVIDIA_NIM, GROQ, CEREBRAS)
}

# Tiers shown by ``--best``.
BEST_TIERS: frozenset[str] = frozenset({"S+", "S", "A+"})


def build_endpoints(
    providers: Iterable[Provider],
    enabled: Mapping[str, bool] | None = None,
) -> list[EndpointState]:
    """Create one pending ``EndpointState`` per model of every enabled provider.

    ``rank`` is the 1-based position across the whole flattened catalog.
    Providers missing from *enabled* are treated as enabled.
    """
    enabled = enabled or {}
    states: list[EndpointState] = []
    for provider in providers:
        if not enabled.get(provider.key, True):
            continue
        for model in provider.models:
            states.append(
                EndpointState(
                    rank=len(states) + 1,
                    provider_key=provider.key,
                    model_id=model.model_id,
                    display_label=model.display_label,
                    capability_tier=model.tier,
                    declared_score=model.declared_score,
                    context_size_label=model.context_size_label,
                )
            )
    return states
