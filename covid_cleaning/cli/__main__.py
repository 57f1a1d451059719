from covid_cleaning.cli.batch_cli import main

main()
