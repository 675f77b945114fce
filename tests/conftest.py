"""Shared fixtures for crate-runner test suite."""

import importlib.util
from textwrap import dedent

import pytest


def pytest_ignore_collect(collection_path, config):  # noqa: ARG001
    """Skip test_locator_treesitter when tree-sitter is not installed."""
    if collection_path.name.startswith("test_locator_treesitter"):
        if importlib.util.find_spec("tree_sitter") is None:
            return True
    return None


LIB_RS = dedent("""\
    ///```rust
    /// assert!(true);
    /// ```
    pub fn add(left: u64, right: u64) -> u64 {
        left + right
    }

    pub mod user;

    #[cfg(test)]
    mod tests {
        use super::*;

        #[test]
        fn it_works() {
            let result = add(2, 2);
            assert_eq!(result, 4);
        }

        #[test]
        fn lets_go() {
            assert!(true);
        }
    }
""")

PROXY_RS = dedent("""\
    fn main() {
        println!("proxy");
    }

    #[cfg(test)]
    mod tests {
        use super::*;

        #[test]
        fn forwards_requests() {
            let upstream = "127.0.0.1:8080";
            assert!(upstream.contains(':'));
        }

        fn helper() -> u8 {
            1
        }
    }
""")

INTEGRATION_TEST_RS = dedent("""\
    use corex::user::User;

    fn greeting(user: &User) -> String {
        format!("Hello, {} ({})", user.name, user.age)
    }

    #[test]
    fn test_user_construction() {
        let user = User::new("Ada".to_string(), 36);
        assert_eq!(user.age, 36);
    }

    /* A block comment with a stray brace { that
       must not count. */
    #[test]
    fn test_char_literals() {
        let open = '{';
        let label = "}}";
        assert_ne!(open.to_string(), label);
    }

    #[test]
    fn test_greeting_formats() {
        let user = User::new("Grace".to_string(), 45);
        let text = greeting(&user);
        assert_eq!(text, "Hello, Grace (45)");
    }
""")

SERVER_MAIN_RS = dedent("""\
    #[tokio::main]
    async fn main() {
        println!("Server running on http://0.0.0.0:3000");
    }

    async fn root() -> &'static str {
        "Welcome to the Axum server!"
    }

    #[cfg(test)]
    mod tests {
        #[test]
        fn it_works() {
            assert!(true);
        }
    }
""")

BENCH_RS = dedent("""\
    use criterion::{criterion_group, criterion_main, Criterion};

    fn fib_iterative(n: u32) -> u64 {
        let (mut a, mut b) = (0u64, 1u64);
        for _ in 0..n {
            let temp = a + b;
            a = b;
            b = temp;
        }
        a
    }

    fn benchmark_iterative(c: &mut Criterion) {
        c.bench_function("iterative_30", |b| b.iter(|| fib_iterative(30)));
    }

    criterion_group!(benches, benchmark_iterative);
    criterion_main!(benches);

    #[cfg(test)]
    mod tests {
        use super::*;

        #[test]
        fn test_fibonacci_correctness() {
            assert_eq!(fib_iterative(10), 55);
        }
    }
""")

USER_RS = dedent("""\
    pub struct User {
        pub name: String,
        pub age: u8,
    }

    impl User {
        pub fn new(name: String, age: u8) -> Self {
            Self { name, age }
        }
    }
""")


def write_files(root, files: dict[str, str]) -> None:
    """Write {relative_path: content} under root, creating parents."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


@pytest.fixture
def sample_repo(tmp_path):
    """Repository with two top-level crates and a nested workspace.

    Layout:
        Cargo.toml                      workspace [corex, server, nested]
        corex/                          lib + bins + tests + example + build.rs
        server/                         primary binary + criterion bench
        nested/                         workspace [plugins/*] with its own lib
        nested/plugins/alpha/           member of the nested workspace
        nested/plugins/alpha/deep/      crate inside alpha's directory
    """
    root = tmp_path / "repo"
    write_files(root, {
        "Cargo.toml": '[workspace]\nmembers = ["corex", "server", "nested"]\n',
        "corex/Cargo.toml": '[package]\nname = "corex"\nversion = "0.1.0"\n',
        "corex/BUILD.bazel": "# rust_library(name = \"corex\")\n",
        "corex/build.rs": "fn main() {}\n",
        "corex/README.md": "# corex\n",
        "corex/src/lib.rs": LIB_RS,
        "corex/src/user.rs": USER_RS,
        "corex/src/bin/proxy.rs": PROXY_RS,
        "corex/src/bin/admin/main.rs": "mod cli;\nfn main() {}\n",
        "corex/src/bin/admin/cli.rs": "pub fn parse() {}\n",
        "corex/tests/integration_test.rs": INTEGRATION_TEST_RS,
        "corex/examples/client.rs": "fn main() {}\n",
        "server/Cargo.toml": (
            '[package]\nname = "server"\nversion = "0.1.0"\n\n'
            '[[bench]]\nname = "fibonacci_benchmark"\nharness = false\n'
        ),
        "server/src/main.rs": SERVER_MAIN_RS,
        "server/benches/fibonacci_benchmark.rs": BENCH_RS,
        "nested/Cargo.toml": (
            '[package]\nname = "nested-tools"\nversion = "0.1.0"\n\n'
            '[workspace]\nmembers = ["plugins/*"]\n'
        ),
        "nested/src/lib.rs": "pub fn tool() {}\n",
        "nested/plugins/alpha/Cargo.toml": '[package]\nname = "alpha"\n',
        "nested/plugins/alpha/src/lib.rs": "pub fn alpha() {}\n",
        "nested/plugins/alpha/deep/Cargo.toml": '[package]\nname = "deep"\n',
        "nested/plugins/alpha/deep/src/lib.rs": "pub fn deep() {}\n",
        "target/debug/Cargo.toml": '[package]\nname = "ignored"\n',
    })
    return root


@pytest.fixture
def workspace(sample_repo):
    from crate_runner.workspace import build_workspace_model
    return build_workspace_model(sample_repo)
