from studio_proxy.cli import main


main()
