"""
Pipewright produces the assets referenced by a static site's pages by
running the most specific matching pipeline rule for each of them.
"""
from .build import SiteBuild
from .config import Config, load_config, resolve_settings
from .core import (
    OP_COPY, AbsoluteFromRoot, AssetRequest, BuildSettings, CopyOperation, DocumentRef,
    InputBuildSettings, Operation, PipelineRule, ProducedAsset, RelativeToDocument, ShellOperation,
)
from .dependencies import Dependency, ExecutableDependency
from .errors import (
    BuildFailedError, CommandFailedError, ConfigError, ExecError, ExecTimeoutError, FileOperationError,
    GlobError, GlobNotAbsoluteError, MalformedGlobError, NoDocumentOriginError, NoMatchingRuleError,
    PathError, PipelineError, PipewrightError, SourceMissingError, TargetNotProducedError,
)
from .executor import PipelineExecutor
from .globs import GlobPattern, Specificity, compile_glob
from .paths import PathResolver, ResolutionContext
from .registry import PipelineRegistry
from .service import PipelineService
