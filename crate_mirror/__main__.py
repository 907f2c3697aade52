from crate_mirror.cli.app import main

if __name__ == "__main__":
    main()
