import argparse

from churn_tree.pipeline import PipelineRunner


def main() -> None:
    """Run the full churn decision-tree pipeline."""
    parser = argparse.ArgumentParser(description="Train and select churn decision trees")
    parser.add_argument("--config", default="config/default.yaml", help="Path to the YAML config")
    args = parser.parse_args()

    runner = PipelineRunner(args.config)
    runner.run()


if __name__ == "__main__":
    main()
