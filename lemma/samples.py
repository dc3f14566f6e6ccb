"""Built-in starter programs, one per guest language."""

from __future__ import annotations

from . import constants

SAMPLES: dict[constants.Language, str] = {
    constants.Language.JAVASCRIPT: """\
// 'var' declarations are flagged by the linter.
var a = 1;
console.log('Initial a:', a);

if (a > 0) {
  // eval("a = 10");
}

console.log('Final a:', a);
""",
    constants.Language.PYTHON: """\
# Arithmetic
a = 1
b = 2
c = a + b
print(c)

# Strings
name = "World"
greeting = "Hello"
message = greeting + " " + name
print(message)

x = 10
y = 5
result = x * y + 3
print("Result:", result)
""",
    constants.Language.GO: """\
package main

import "fmt"

func main() {
    // Arithmetic
    a := 10
    b := 20
    sum := a + b
    fmt.Println("Sum:", sum)

    // Strings
    name := "Go"
    message := "Hello " + name
    fmt.Println(message)

    x := 5
    y := 3
    product := x * y
    fmt.Println("Product:", product)
}
""",
    constants.Language.RUST: """\
fn main() {
    // Arithmetic
    let a = 5;
    let b = 10;
    let sum = a + b;
    println!("Sum: {}", sum);

    // Strings
    let name = "Rust";
    let greeting = format!("Hello {}", name);
    println!("{}", greeting);

    let x = 7;
    let y = 3;
    let product = x * y;
    println!("Product: {}", product);
}
""",
    constants.Language.CPP: """\
#include <iostream>

int main() {
    // Arithmetic
    int a = 15;
    int b = 25;
    int sum = a + b;
    std::cout << "Sum: " << sum << std::endl;

    int x = 8;
    int y = 4;
    int product = x * y;
    std::cout << "Product: " << product << std::endl;

    return 0;
}
""",
}


def get_sample(language: str) -> str:
    return SAMPLES[constants.to_language(language)]
