"""
Simple script to validate a scraper config file.

Usage:
    python validate_workflow.py configs/example.yaml
"""

import sys
import logging

import yaml

from error_handler import ConfigurationError
from workflow_loader import load_scraper_config, validate_scraper_config

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def main():
    if len(sys.argv) < 2:
        print("Usage: python validate_workflow.py <config_file>")
        sys.exit(1)

    config_file = sys.argv[1]

    try:
        logger.info(f"Loading config: {config_file}")
        config = load_scraper_config(config_file)
        workflow = config.workflow

        logger.info("✓ Config loaded successfully")
        logger.info(f"  Scraper: {config.name}")
        logger.info(f"  Workflow: {workflow.name} ({len(workflow.steps)} steps)")
        for index, step in enumerate(workflow.steps):
            output = f" -> {step.output}" if step.output else ""
            logger.info(f"    {index + 1}. {step.label(index)} [{step.type}]{output}")

        if workflow.sub_workflows:
            logger.info(f"  Sub-workflows: {', '.join(workflow.sub_workflows)}")

        logger.info(f"  Browser: {config.browser.browser_type} (headless={config.browser.headless})")
        logger.info(f"  Retries: {config.error_handling.retries}, "
                    f"continueOnError: {config.error_handling.continue_on_error}")

        warnings = validate_scraper_config(config)
        if warnings:
            logger.warning("Validation warnings:")
            for warning in warnings:
                logger.warning(f"  - {warning}")
        else:
            logger.info("✓ No validation warnings")

        logger.info("")
        logger.info("Config is valid and ready to use!")
        logger.info(f"Run with: python scraper.py {config_file}")

    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        sys.exit(1)
    except (ConfigurationError, yaml.YAMLError) as e:
        logger.error(f"Invalid config: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
