from tealeaf.channel import DispatchChannel, Subscription
from tealeaf.config import (
    FeatureConfig,
    FeatureOverride,
    TeaConfig,
    discover_config,
    load_config,
)
from tealeaf.effect import Effect, EffectAction, batch, dispatch_effect, effect, none
from tealeaf.feature import Feature, TeaFeature
from tealeaf.scope import EffectRunner, FeatureScope, ScopeClosedError
from tealeaf.state import StateCell, StateWatcher
from tealeaf.types import (
    Dispatch,
    Init,
    InitWithPrevious,
    Render,
    Update,
    View,
    init_with_previous,
)
from tealeaf.view import project_latest

__all__ = [
    "Dispatch",
    "DispatchChannel",
    "Effect",
    "EffectAction",
    "EffectRunner",
    "Feature",
    "FeatureConfig",
    "FeatureOverride",
    "FeatureScope",
    "Init",
    "InitWithPrevious",
    "Render",
    "ScopeClosedError",
    "StateCell",
    "StateWatcher",
    "Subscription",
    "TeaConfig",
    "TeaFeature",
    "Update",
    "View",
    "batch",
    "discover_config",
    "dispatch_effect",
    "effect",
    "init_with_previous",
    "load_config",
    "none",
    "project_latest",
]
