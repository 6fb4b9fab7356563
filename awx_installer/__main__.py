from awx_installer.cli import main

main()
