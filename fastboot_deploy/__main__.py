"""Run the fastboot-deploy command line tool with `python -m fastboot_deploy`."""

from fastboot_deploy.tool.fastboot_deploy import main

if __name__ == "__main__":
    main()
