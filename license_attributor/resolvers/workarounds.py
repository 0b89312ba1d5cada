"""Built-in clarifications for popular crates with ambiguous licensing.

Each workaround knows which crates it applies to and produces a
checksum-bound clarification for them. Workarounds are opt-in: only the
names listed under ``workarounds`` in the configuration are consulted.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Mapping, NamedTuple, Optional

from packaging.specifiers import SpecifierSet
from packaging.version import InvalidVersion, Version

from license_attributor.models.evidence import Clarification, FileClaim
from license_attributor.models.graph import PackageNode

APACHE_2_0_CHECKSUM = "a60eea817514531668d7e00765731449fe14d059d3249e0bc93b36de45f759f2"
MIT_CHECKSUM = "23f18e03dc49df91622fe2a76176497404e46ced8a715d9d2b67a7446571cca3"
APACHE_LLVM_CHECKSUM = "268872b9816f90fd8e85db5a28d33f8150ebb8dd016653fb39ef1f94f2686bc5"


class Workaround(NamedTuple):
    """A built-in clarification.

    Attributes:
        name: Name used to enable the workaround in configuration.
        crates: Predicate selecting the crates the workaround covers.
        build: Produces the clarification for a covered crate.
        versions: Versions covered, None for every version.
    """

    name: str
    crates: Callable[[PackageNode], bool]
    build: Callable[[PackageNode], Clarification]
    versions: Optional[SpecifierSet] = None

    def applies_to(self, node: PackageNode) -> bool:
        """Check if the workaround covers a package."""
        if not self.crates(node):
            return False
        if self.versions is None:
            return True
        try:
            return self.versions.contains(Version(node.version), prereleases=True)
        except InvalidVersion:
            return False


def _named(*names: str) -> Callable[[PackageNode], bool]:
    covered = frozenset(names)
    return lambda node: node.name in covered


def _static(clarification: Clarification) -> Callable[[PackageNode], Clarification]:
    return lambda node: clarification


def _git(path: str, checksum: str, license: Optional[str] = None) -> FileClaim:
    return FileClaim(path=path, checksum=checksum, license=license)


def _bitvec(node: PackageNode) -> Clarification:
    checksums = {
        "bitvec": "411781fd38700f2357a14126d0ab048164ab881f1dcb335c1bb932e232c9a2f5",
        "wyz": "43fb7b0d1c6fa07d1ffe65d574dc53830cc31027d7c171e4b65f128d74190d94",
    }
    return Clarification(
        license="MIT",
        git=[_git("LICENSE.txt", checksums[node.name])],
    )


_CHRONO = Clarification(
    license="Apache-2.0 OR MIT",
    files=[
        FileClaim(
            path="LICENSE.txt",
            license="MIT",
            checksum="332b974a713ff4e5536be4732fbffd1026694d4a1cbe8d832c969625d991f22c",
            start="The MIT License (MIT)",
            end="THE SOFTWARE.",
        ),
        FileClaim(
            path="LICENSE.txt",
            license="Apache-2.0",
            checksum="769f80b5bcb42ed0af4e4d2fd74e1ac9bf843cb80c5a29219d1ef3544428a6bb",
            start="                              Apache License",
            end="limitations under the License.",
        ),
    ],
)

_CLAP = Clarification(
    license="MIT OR Apache-2.0",
    git=[
        _git(
            "LICENSE-APACHE",
            "c71d239df91726fc519c6eb72d318ec65820627232b2f796219e87dcf35d0ab4",
            "Apache-2.0",
        ),
        _git(
            "LICENSE-MIT",
            "6725d1437fc6c77301f2ff0e7d52914cf4f9509213e1078dc77d9356dbe6eac5",
            "MIT",
        ),
    ],
)


def _cocoa(node: PackageNode) -> Clarification:
    # core-graphics-types was published from a commit that no longer exists
    override = (
        "3841d2bb3aa76dec2ea6319e757603fb923b5a50"
        if node.name == "core-graphics-types"
        else None
    )
    return Clarification(
        license="MIT OR Apache-2.0",
        override_git_commit=override,
        git=[
            _git("LICENSE-APACHE", APACHE_2_0_CHECKSUM, "Apache-2.0"),
            _git(
                "LICENSE-MIT",
                "62065228e42caebca7e7d7db1204cbb867033de5982ca4009928915e4095f3a3",
                "MIT",
            ),
        ],
    )


_GTK = Clarification(
    license="MIT",
    git=[
        _git("LICENSE", "8cf56d10131ce201cf69ab74b111d3ebac1acca3833d7efb39ae357224b70edb")
    ],
)

_RING = Clarification(
    license="ISC AND OpenSSL AND MIT",
    files=[
        # ISC license covering the rust code
        FileClaim(
            path="LICENSE",
            license="ISC",
            checksum="ad5273d2df002d688c00405426acc3eaeba3d83333c61fc0bad7e878a889a65c",
            start="   Copyright 2015-2016 Brian Smith.",
            end="CONNECTION WITH THE USE OR PERFORMANCE OF THIS SOFTWARE.",
        ),
        # code inherited from OpenSSL via BoringSSL
        FileClaim(
            path="LICENSE",
            license="OpenSSL",
            checksum="53552a9b197cd0db29bd085d81253e67097eedd713706e8cd2a3cc6c29850ceb",
            start="/* ====================================================================",
            end="\n * Hudson (tjh@cryptsoft.com).\n *\n */",
        ),
        # new code in BoringSSL
        FileClaim(
            path="LICENSE",
            license="ISC",
            checksum="5dd6bae8b7ee15b1234a4ec7c01d9413e050cb1102e52e4ccae8de26ef63e2aa",
            start="/* Copyright (c) 2015, Google Inc.",
            end="\n * CONNECTION WITH THE USE OR PERFORMANCE OF THIS SOFTWARE. */\n",
        ),
        # third_party/fiat
        FileClaim(
            path="LICENSE",
            license="MIT",
            checksum="58f60c5a20faa9c92a535bf497d055233e46aa69e0301f6de1b7b7e4a2c5322f",
            start="Copyright (c) 2015-2016 the fiat-crypto authors (see",
            end="\nSOFTWARE.\n",
        ),
    ],
)

_RUSTIX = Clarification(
    license="(Apache-2.0 WITH LLVM-exception) OR Apache-2.0 OR MIT",
    git=[
        _git("LICENSE-APACHE", APACHE_2_0_CHECKSUM, "Apache-2.0"),
        _git("LICENSE-MIT", MIT_CHECKSUM, "MIT"),
        _git(
            "LICENSE-Apache-2.0_WITH_LLVM-exception",
            APACHE_LLVM_CHECKSUM,
            "Apache-2.0 WITH LLVM-exception",
        ),
    ],
)

_RUSTLS = Clarification(
    license="Apache-2.0 OR MIT OR ISC",
    git=[
        _git("LICENSE-APACHE", APACHE_2_0_CHECKSUM, "Apache-2.0"),
        _git(
            "LICENSE-MIT",
            "709e3175b4212f7b13aa93971c9f62ff8c69ec45ad8c6532a7e0c41d7a7d6f8c",
            "MIT",
        ),
        _git(
            "LICENSE-ISC",
            "7cfafc877eccc46c0e346ccbaa5c51bb6b894d2b818e617d970211e232785ad4",
            "ISC",
        ),
    ],
)


def _sentry(node: PackageNode) -> Clarification:
    # sentry tags releases with the bare version number
    return Clarification(
        license="MIT",
        override_git_commit=node.version,
        git=[
            _git(
                "LICENSE",
                "cfc7749b96f63bd31c3c42b5c471bf756814053e847c10f3eb003417bc523d30",
            )
        ],
    )


_TONIC = Clarification(
    license="MIT",
    git=[
        _git("LICENSE", "4f38e3a425725eb447213c75c0d8ae9f0d1f2ebc4f3183e2106aaf07c23f4b20")
    ],
)

_TRACT = Clarification(
    license="Apache-2.0 OR MIT",
    git=[
        _git("LICENSE-APACHE", APACHE_2_0_CHECKSUM, "Apache-2.0"),
        _git("LICENSE-MIT", MIT_CHECKSUM, "MIT"),
    ],
)

_UNICODE_IDENT = Clarification(
    license="(MIT OR Apache-2.0) AND Unicode-DFS-2016",
    files=[
        FileClaim(
            path="LICENSE-UNICODE",
            license="Unicode-DFS-2016",
            checksum="68f5b9f5ea36881a0942ba02f558e9e1faf76cc09cb165ad801744c61b738844",
        ),
        FileClaim(
            path="LICENSE-APACHE",
            license="Apache-2.0",
            checksum="62c7a1e35f56406896d7aa7ca52d0cc0d272ac022b5d2796e7d6905db8a3636a",
        ),
        FileClaim(path="LICENSE-MIT", license="MIT", checksum=MIT_CHECKSUM),
    ],
)


def _wasmtime(node: PackageNode) -> Clarification:
    # wasmtime-types was published without its LICENSE file
    if node.name == "wasmtime-types":
        return Clarification(
            license="Apache-2.0 WITH LLVM-exception",
            git=[_git("LICENSE", APACHE_LLVM_CHECKSUM)],
        )
    return Clarification(
        license="Apache-2.0 WITH LLVM-exception",
        files=[FileClaim(path="LICENSE", checksum=APACHE_LLVM_CHECKSUM)],
    )


WORKAROUNDS: Mapping[str, Workaround] = MappingProxyType(
    {
        w.name: w
        for w in (
            Workaround("bitvec", _named("bitvec", "wyz"), _bitvec),
            Workaround("chrono", _named("chrono"), _static(_CHRONO)),
            Workaround(
                "clap",
                _named("clap", "clap_derive", "clap_generate"),
                _static(_CLAP),
            ),
            Workaround(
                "cocoa",
                _named(
                    "cocoa-foundation",
                    "core-foundation",
                    "core-foundation-sys",
                    "core-graphics-types",
                ),
                _cocoa,
            ),
            Workaround(
                "gtk",
                _named(
                    "atk-sys",
                    "cairo-sys-rs",
                    "gdk-pixbuf-sys",
                    "gdk-sys",
                    "gio-sys",
                    "glib-sys",
                    "gobject-sys",
                    "gtk-sys",
                ),
                _static(_GTK),
            ),
            # older ring releases get yanked, only the current line is covered
            Workaround("ring", _named("ring"), _static(_RING), SpecifierSet(">=0.16.0")),
            Workaround("rustix", _named("rustix"), _static(_RUSTIX)),
            Workaround("rustls", _named("rustls"), _static(_RUSTLS)),
            Workaround(
                "sentry",
                _named(
                    "sentry",
                    "sentry-backtrace",
                    "sentry-contexts",
                    "sentry-core",
                    "sentry-debug-images",
                    "sentry-types",
                ),
                _sentry,
            ),
            Workaround("tonic", _named("tonic", "tonic-build"), _static(_TONIC)),
            Workaround(
                "tract",
                lambda node: node.name.startswith("tract-"),
                _static(_TRACT),
            ),
            Workaround("unicode-ident", _named("unicode-ident"), _static(_UNICODE_IDENT)),
            Workaround(
                "wasmtime",
                _named(
                    "cranelift-bforest",
                    "cranelift-codegen",
                    "cranelift-codegen-meta",
                    "cranelift-codegen-shared",
                    "cranelift-entity",
                    "cranelift-frontend",
                    "cranelift-native",
                    "cranelift-wasm",
                    "wasi-cap-std-sync",
                    "wasi-common",
                    "wasmtime",
                    "wasmtime-environ",
                    "wasmtime-jit",
                    "wasmtime-runtime",
                    "wasmtime-types",
                    "wasmtime-wasi",
                    "wast",
                    "wiggle",
                    "wiggle-generate",
                    "wiggle-macro",
                    "winx",
                ),
                _wasmtime,
            ),
        )
    }
)


def find_workaround(node: PackageNode, enabled: list[str]) -> Optional[Workaround]:
    """Return the first enabled workaround that covers a package."""
    for name in enabled:
        workaround = WORKAROUNDS.get(name)
        if workaround is not None and workaround.applies_to(node):
            return workaround
    return None
