# juche_build.py
# Builds the small demo program under examples/hello with juche itself.
from __future__ import annotations

import os

from juche import IN, OUT, step, targets
from juche.step_workflows.cc import compile_step, link_step

BUILD = "build/"
CC = "cc"
FLAGS = "-Wall -Wextra -Werror -pedantic-errors -std=c99 -ggdb"


def build_targets():
    os.makedirs(BUILD, exist_ok=True)

    main_o = compile_step("examples/hello/main.c", BUILD + "main.o", cc=CC, flags=[FLAGS])
    greet_o = compile_step("examples/hello/greet.c", BUILD + "greet.o", cc=CC, flags=[FLAGS])
    hello = link_step([main_o, greet_o], BUILD + "hello", cc=CC)

    # single-step form: compile and link in one go
    hello_direct = step(
        CC,
        BUILD + "hello-direct",
        IN,
        "-o " + OUT,
        FLAGS,
        inputs=["examples/hello/main.c", "examples/hello/greet.c"],
        depends=["examples/hello/greet.h"],
    )
    return targets(hello, hello_direct)
